# Copyright (c) 2026 NASK. All rights reserved.

"""
Direct assignability and safe implicit conversions between types.

>>> is_assignable(int, int)
True
>>> is_assignable(bool, int)
True
>>> is_assignable(float, int)
False
>>> convert = get_implicit_converter(float, int)
>>> convert(17.3)
17
>>> get_implicit_converter(str, int) is None
True
"""

import decimal
import enum
import fractions
import numbers
from collections.abc import Callable
from typing import (
    Any,
    Optional,
    get_args,
    get_origin,
)

from n6dto.type_descriptors import (
    NoneType,
    PRIMITIVE_CLASSES,
    get_type_class,
    is_dynamic_type,
    is_optional_type,
    is_union_type,
    unwrap_newtype,
)


_NUMBER_TARGET_CLASSES = (
    int,
    float,
    complex,
    decimal.Decimal,
    fractions.Fraction,
)

_TEXT_CODEC = 'utf-8'
_TEXT_CODEC_ERROR_HANDLER = 'surrogateescape'


def is_assignable(src_type, dst_type) -> bool:
    """
    Tell whether a value of `src_type` can be stored, as is, in a slot of
    `dst_type`.

    >>> is_assignable(list[int], list[int])
    True
    >>> is_assignable(list[int], list)
    True
    >>> is_assignable(list, list[int])      # (items would not be checked)
    False
    >>> is_assignable(list, list[Any])
    True
    >>> is_assignable(str, Any)
    True
    >>> is_assignable(type(None), Optional[int])
    True
    >>> is_assignable(int, Optional[int])   # (an optional is filled by walking)
    False
    >>> is_assignable(int, int | str)
    True
    """
    if src_type == dst_type or is_dynamic_type(dst_type):
        return True
    if is_optional_type(dst_type):
        return src_type is NoneType
    if is_union_type(dst_type):
        return any(is_assignable(src_type, member) for member in get_args(dst_type))
    src_class = _get_plain_or_origin_class(src_type)
    dst_class = _get_plain_or_origin_class(dst_type)
    if src_class is None or dst_class is None or not issubclass(src_class, dst_class):
        return False
    dst_args = get_args(dst_type)
    if not dst_args or all(arg is Ellipsis or is_dynamic_type(arg) for arg in dst_args):
        return True
    return get_args(src_type) == dst_args


def get_implicit_converter(src_type, dst_type) -> Optional[Callable[[Any], Any]]:
    """
    Get a callable that converts a value of `src_type` to `dst_type` in a
    safe, value-preserving-where-possible manner -- or `None` if there
    is no such conversion.

    Supported are: conversions between real numbers (float-to-int ones
    truncate toward zero), `str` <-> `bytes`/`bytearray` (UTF-8, with the
    `surrogateescape` error handler), `bytes` <-> `bytearray`, and
    conversions from a primitive to a (non-enum) subclass of it.  Any
    `typing.NewType` is unwrapped to its supertype.  Note: never
    text-to-number and never number-to-text.

    >>> get_implicit_converter(int, float)(3)
    3.0
    >>> get_implicit_converter(str, bytes)('zażółć')
    b'za\\xc5\\xbc\\xc3\\xb3\\xc5\\x82\\xc4\\x87'
    >>> get_implicit_converter(bytes, str)(b'\\xff')
    '\\udcff'
    >>> get_implicit_converter(int, str) is None
    True
    """
    src_class = _get_plain_class(unwrap_newtype(src_type))
    dst_class = _get_plain_class(unwrap_newtype(dst_type))
    if src_class is None or dst_class is None or issubclass(dst_class, enum.Enum):
        return None
    if issubclass(src_class, dst_class):
        return _identity
    if _is_real_number_class(src_class):
        if issubclass(dst_class, _NUMBER_TARGET_CLASSES) and not issubclass(dst_class, bool):
            return dst_class
        return None
    if issubclass(src_class, str) and issubclass(dst_class, (bytes, bytearray)):
        return lambda value: dst_class(value.encode(_TEXT_CODEC, _TEXT_CODEC_ERROR_HANDLER))
    if issubclass(src_class, (bytes, bytearray)):
        if issubclass(dst_class, str):
            return lambda value: dst_class(bytes(value).decode(_TEXT_CODEC,
                                                               _TEXT_CODEC_ERROR_HANDLER))
        if issubclass(dst_class, (bytes, bytearray)):
            return dst_class
    if src_class in PRIMITIVE_CLASSES and issubclass(dst_class, src_class):
        return dst_class
    return None


def _identity(value):
    return value


def _is_real_number_class(cls) -> bool:
    # (`Decimal` is not registered as a `numbers.Real`)
    return issubclass(cls, (numbers.Real, decimal.Decimal))


def _get_plain_class(type_hint) -> Optional[type]:
    if is_dynamic_type(type_hint):
        return None
    if get_origin(type_hint) is None and isinstance(type_hint, type):
        return type_hint
    return None


def _get_plain_or_origin_class(type_hint) -> Optional[type]:
    if hasattr(type_hint, '__supertype__'):
        # (a `NewType` is not assignable to anything but itself)
        return None
    return get_type_class(type_hint)
