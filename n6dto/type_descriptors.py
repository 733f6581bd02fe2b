# Copyright (c) 2026 NASK. All rights reserved.

"""
Type descriptors -- an abstract view of a type's shape (*kind*) and
identity, as used by the *n6dto* mapping machinery.

Python values do not carry static types, so here a *type* is a type
hint (such as `int`, `Product`, `list[Product]`, `Optional[Product]`,
`dict[str, list[Product]]`, a `typing.NewType` object...).  Type hints
are hashable and compare structurally, so they are used directly as
*type identities* (e.g., as keys of the function registries), with the
proviso that any `typing.Annotated[...]` wrapper is stripped (the
metadata of such a wrapper belong to the annotated *field*, not to the
type).

>>> describe_type(int)
TypeDescriptor(kind=<Kind.PRIMITIVE: 'primitive'>, identity=<class 'int'>)
>>> describe_type(list[int]).kind
<Kind.SEQUENCE: 'sequence'>
>>> describe_type(Optional[int]).kind
<Kind.POINTER: 'pointer'>
>>> describe_type(type(None)).kind
<Kind.POINTER: 'pointer'>
>>> describe_type(dict[str, int]).kind
<Kind.MAP: 'map'>
>>> describe_type(str).kind      # (strings are *not* sequences here)
<Kind.PRIMITIVE: 'primitive'>
"""

import collections.abc as collections_abc
import dataclasses
import decimal
import enum
import fractions
import functools
import inspect
import types
import typing
from typing import (
    Annotated,
    Any,
    ClassVar,
    Generic,
    NamedTuple,
    Optional,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from n6dto.class_helpers import attr_repr


T = TypeVar('T')

NoneType = type(None)

#: Classes whose instances are always treated as "atomic" values.
PRIMITIVE_CLASSES = (
    str,
    bytes,
    bytearray,
    memoryview,
    bool,
    int,
    float,
    complex,
    decimal.Decimal,
    fractions.Fraction,
)

_UNION_ORIGINS = (Union, types.UnionType)



#
# Kinds and descriptors

class Kind(enum.Enum):

    """The coarse category of a type."""

    PRIMITIVE = 'primitive'
    POINTER = 'pointer'
    STRUCT = 'struct'
    SEQUENCE = 'sequence'
    MAP = 'map'


COMPOSITE_KINDS = frozenset({Kind.STRUCT, Kind.SEQUENCE, Kind.MAP})


class TypeDescriptor(NamedTuple):

    """
    The kind and the identity of a type.

    Use `describe_type()` to obtain an instance.
    """

    kind: Kind
    identity: Any

    @property
    def is_composite(self) -> bool:
        return self.kind in COMPOSITE_KINDS


def describe_type(type_hint) -> TypeDescriptor:
    """
    Get the `TypeDescriptor` of the given type hint.

    `Annotated[...]` wrappers are stripped; a `typing.NewType` keeps
    its own identity but gets the kind of its supertype.
    """
    type_hint = strip_annotated(type_hint)
    return TypeDescriptor(_get_kind(type_hint), type_hint)


def _get_kind(type_hint) -> Kind:
    if type_hint is None or type_hint is NoneType or is_optional_type(type_hint):
        return Kind.POINTER
    base = unwrap_newtype(type_hint)
    if base is not type_hint:
        return _get_kind(base)
    if is_union_type(type_hint) or is_dynamic_type(type_hint):
        return Kind.PRIMITIVE
    cls = get_type_class(type_hint)
    if cls is None or issubclass(cls, PRIMITIVE_CLASSES) or issubclass(cls, enum.Enum):
        return Kind.PRIMITIVE
    if is_struct_class(cls):
        return Kind.STRUCT
    if issubclass(cls, collections_abc.Mapping):
        return Kind.MAP
    if issubclass(cls, collections_abc.Sequence):
        return Kind.SEQUENCE
    return Kind.PRIMITIVE



#
# Type hint inspection helpers

def strip_annotated(type_hint):
    """
    >>> strip_annotated(Annotated[int, 'some metadata'])
    <class 'int'>
    >>> strip_annotated(list[int])
    list[int]
    """
    while get_origin(type_hint) is Annotated:
        type_hint = type_hint.__origin__
    return type_hint


def get_annotated_metadata(type_hint) -> tuple:
    if get_origin(type_hint) is Annotated:
        return tuple(type_hint.__metadata__)
    return ()


def unwrap_newtype(type_hint):
    """
    Get the (ultimate) supertype of a `typing.NewType`; any other type
    hint is returned intact (only with `Annotated[...]` stripped).

    >>> UserId = typing.NewType('UserId', int)
    >>> unwrap_newtype(UserId)
    <class 'int'>
    >>> unwrap_newtype(str)
    <class 'str'>
    """
    type_hint = strip_annotated(type_hint)
    while hasattr(type_hint, '__supertype__'):
        type_hint = strip_annotated(type_hint.__supertype__)
    return type_hint


def is_dynamic_type(type_hint) -> bool:
    """
    Tell whether the type hint does not constrain the value at all
    (`Any`, `object`, a type variable).
    """
    return type_hint is Any or type_hint is object or isinstance(type_hint, TypeVar)


def is_union_type(type_hint) -> bool:
    return get_origin(type_hint) in _UNION_ORIGINS


def is_optional_type(type_hint) -> bool:
    return is_union_type(type_hint) and NoneType in get_args(type_hint)


def get_type_class(type_hint) -> Optional[type]:
    """
    Get the class behind a type hint (for a generic alias: its origin
    class), or `None` if there is no such class.

    >>> get_type_class(list[int])
    <class 'list'>
    >>> get_type_class(int)
    <class 'int'>
    >>> get_type_class(Optional[int]) is None
    True
    """
    type_hint = unwrap_newtype(type_hint)
    if is_union_type(type_hint) or is_dynamic_type(type_hint):
        return None
    origin = get_origin(type_hint)
    if origin is not None:
        return origin if isinstance(origin, type) else None
    return type_hint if isinstance(type_hint, type) else None


def pointee_type(type_hint):
    """
    Get the type pointed to by an optional type (i.e., the union of all
    non-`None` members of it).

    >>> pointee_type(Optional[int])
    <class 'int'>
    """
    type_hint = unwrap_newtype(type_hint)
    members = tuple(arg for arg in get_args(type_hint) if arg is not NoneType)
    if not members:
        return Any
    if len(members) == 1:
        return members[0]
    return Union[members]


def sequence_item_type(type_hint, index=0):
    """
    Get the declared type of the item at the given position of a
    sequence type; `Any` if the sequence type is not parameterized.

    >>> sequence_item_type(list[int])
    <class 'int'>
    >>> sequence_item_type(tuple[int, ...], 5)
    <class 'int'>
    >>> sequence_item_type(tuple[int, str], 1)
    <class 'str'>
    >>> sequence_item_type(list)
    typing.Any
    """
    type_hint = unwrap_newtype(type_hint)
    args = get_args(type_hint)
    if not args:
        return Any
    cls = get_type_class(type_hint)
    if cls is not None and issubclass(cls, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        return args[index] if index < len(args) else Any
    return args[0]


def get_fixed_tuple_length(type_hint) -> Optional[int]:
    """
    For a fixed-length tuple type (such as `tuple[int, str]`) get its
    length; for any other type hint -- `None`.

    >>> get_fixed_tuple_length(tuple[int, str])
    2
    >>> get_fixed_tuple_length(tuple[int, ...]) is None
    True
    >>> get_fixed_tuple_length(list[int]) is None
    True
    """
    type_hint = unwrap_newtype(type_hint)
    cls = get_type_class(type_hint)
    args = get_args(type_hint)
    if cls is None or not issubclass(cls, tuple) or not args:
        return None
    if len(args) == 2 and args[1] is Ellipsis:
        return None
    return len(args)


def mapping_item_types(type_hint) -> tuple:
    """
    Get the declared (key type, value type) pair of a mapping type.

    >>> mapping_item_types(dict[str, int])
    (<class 'str'>, <class 'int'>)
    >>> mapping_item_types(dict)
    (typing.Any, typing.Any)
    """
    args = get_args(unwrap_newtype(type_hint))
    if len(args) == 2:
        return args
    return Any, Any


def type_repr(type_hint) -> str:
    """
    A human-readable representation of a type hint (for messages).

    >>> type_repr(int)
    'int'
    >>> type_repr(list[int])
    'list[int]'
    >>> type_repr(typing.NewType('UserId', int))
    'UserId'
    """
    if get_origin(type_hint) is None and isinstance(type_hint, type):
        return type_hint.__qualname__
    if hasattr(type_hint, '__supertype__'):
        return type_hint.__name__
    return repr(type_hint).replace('typing.', '')



#
# Structs

def is_struct_class(cls) -> bool:
    """
    Tell whether the given class is a *struct* class, i.e., a class
    with declared, named fields: a dataclass, a named tuple class or
    any other class whose annotations (excluding `ClassVar` ones) are
    not empty -- unless it is a primitive, an enum or a collection.
    """
    if not isinstance(cls, type):
        return False
    if issubclass(cls, PRIMITIVE_CLASSES) or issubclass(cls, enum.Enum):
        return False
    if dataclasses.is_dataclass(cls) or _is_named_tuple_class(cls):
        return True
    if issubclass(cls, (collections_abc.Mapping,
                        collections_abc.Sequence,
                        collections_abc.Set)):
        return False
    return bool(get_struct_field_hints(cls))


def get_struct_class(type_hint) -> Optional[type]:
    """
    Get the struct class behind the type hint, or `None` if the type
    hint does not denote a struct type.
    """
    cls = get_type_class(type_hint)
    if cls is not None and is_struct_class(cls):
        return cls
    return None


@functools.lru_cache(maxsize=1024)
def get_struct_field_hints(cls) -> tuple:
    """
    Get a tuple of (field name, declared type hint) pairs for the given
    class, in the order of declaration (fields of base classes first).

    `Annotated[...]` wrappers are kept (they may carry field tags).
    Names starting with `_` (non-public ones), `ClassVar`s and dataclass
    `InitVar`s are not fields.
    """
    hints = typing.get_type_hints(cls, include_extras=True)
    if dataclasses.is_dataclass(cls):
        names = [field.name for field in dataclasses.fields(cls)]
    elif _is_named_tuple_class(cls):
        names = list(cls._fields)
    else:
        names = list(hints)
    field_hints = []
    for name in names:
        hint = hints.get(name, Any)
        if name.startswith('_') or _is_class_var(hint) or isinstance(hint, dataclasses.InitVar):
            continue
        field_hints.append((name, hint))
    return tuple(field_hints)


def new_struct_instance(cls):
    """
    Allocate a new *zero* instance of the given struct class -- without
    calling its `__init__()`; each field is set to its dataclass default
    (or the result of its default factory) or, if there is none, to the
    zero value of the field's type (see: `zero_value()`).
    """
    if _is_named_tuple_class(cls):
        return cls._make(
            cls._field_defaults[name] if name in cls._field_defaults
            else zero_value(hint)
            for name, hint in get_struct_field_hints(cls))
    if dataclasses.is_dataclass(cls):
        dataclass_fields = {field.name: field for field in dataclasses.fields(cls)}
    else:
        dataclass_fields = {}
    instance = cls.__new__(cls)
    for name, hint in get_struct_field_hints(cls):
        field = dataclass_fields.get(name)
        if field is not None and field.default is not dataclasses.MISSING:
            value = field.default
        elif field is not None and field.default_factory is not dataclasses.MISSING:
            value = field.default_factory()
        else:
            value = zero_value(hint)
        # (like the `__init__()` generated for a frozen dataclass does)
        object.__setattr__(instance, name, value)
    return instance


def is_immutable_struct_class(cls) -> bool:
    """
    >>> from dataclasses import dataclass
    >>> @dataclass(frozen=True)
    ... class Money:
    ...     amount: int = 0
    ...
    >>> is_immutable_struct_class(Money)
    True
    >>> is_immutable_struct_class(NamedTuple('Point', [('x', int)]))
    True
    >>> @dataclass
    ... class Wallet:
    ...     amount: int = 0
    ...
    >>> is_immutable_struct_class(Wallet)
    False
    """
    if _is_named_tuple_class(cls):
        return True
    return dataclasses.is_dataclass(cls) and cls.__dataclass_params__.frozen


def _is_named_tuple_class(cls) -> bool:
    return isinstance(cls, type) and issubclass(cls, tuple) and hasattr(cls, '_fields')


def _is_class_var(type_hint) -> bool:
    type_hint = strip_annotated(type_hint)
    return type_hint is ClassVar or get_origin(type_hint) is ClassVar



#
# Values

def zero_value(type_hint):
    """
    Get the *zero value* of the given type.

    >>> zero_value(int), zero_value(str), zero_value(Optional[int])
    (0, '', None)
    >>> zero_value(list[int]), zero_value(tuple[int, ...]), zero_value(dict[str, int])
    ([], (), {})
    >>> zero_value(Any) is None
    True
    """
    type_hint = unwrap_newtype(type_hint)
    kind = _get_kind(type_hint)
    if kind is Kind.POINTER:
        return None
    if kind is Kind.STRUCT:
        return new_struct_instance(get_type_class(type_hint))
    if kind is Kind.SEQUENCE:
        return make_sequence(type_hint, ())
    if kind is Kind.MAP:
        return make_mapping(type_hint, ())
    cls = get_type_class(type_hint)
    if cls in PRIMITIVE_CLASSES and cls is not memoryview:
        return cls()
    return None


def make_sequence(type_hint, items):
    """
    Make a sequence of the class denoted by the type hint (a `list` for
    abstract sequence types) containing the given items.

    >>> make_sequence(collections_abc.Sequence[int], iter([1, 2]))
    [1, 2]
    >>> make_sequence(tuple[int, ...], [1, 2])
    (1, 2)
    """
    cls = get_type_class(type_hint)
    if cls is None or cls is list or inspect.isabstract(cls) or cls is collections_abc.Sequence:
        return list(items)
    return cls(items)


def make_mapping(type_hint, items):
    """
    Make a mapping of the class denoted by the type hint (a `dict` for
    abstract mapping types) containing the given (key, value) items.
    """
    cls = get_type_class(type_hint)
    if cls is None or cls is dict or inspect.isabstract(cls) or cls is collections_abc.Mapping:
        return dict(items)
    return cls(items)


def resolve_source_type(declared_type, value):
    """
    Get the type describing a source value: the declared type if it is
    known and concrete, otherwise the runtime type of the value.

    >>> resolve_source_type(Any, 42)
    <class 'int'>
    >>> resolve_source_type(Optional[int], None) == Optional[int]
    True
    >>> resolve_source_type(int, None)
    <class 'NoneType'>
    >>> resolve_source_type(typing.Union[int, str], 'abc')
    <class 'str'>
    """
    declared_type = strip_annotated(declared_type)
    if (declared_type is None
          or is_dynamic_type(declared_type)
          or (is_union_type(declared_type) and not is_optional_type(declared_type))):
        return type(value)
    if value is None and _get_kind(declared_type) is not Kind.POINTER:
        return NoneType
    return declared_type


class Ref(Generic[T]):

    """
    A mutable cell referring to a value -- the counterpart of a pointer
    to a destination slot.

    It is used:

    * as the destination (and/or the source) argument of
      `Mapper.map()` -- to map into a non-struct top-level destination
      (then `type_hint` specifies the destination type);

    * by inspection functions whose first parameter is annotated as
      `Ref[D]` -- they receive a `Ref` whose `value` can be replaced
      (the new value becomes the destination value).

    >>> ref = Ref(type_hint=list[int])
    >>> ref
    <Ref value=None, type_hint=list[int]>
    >>> ref.value = [1, 2, 3]
    >>> ref.value
    [1, 2, 3]
    """

    def __init__(self, value=None, type_hint=None):
        self.value = value
        self.type_hint = type_hint

    __repr__ = attr_repr('value', 'type_hint')


def is_ref_type(type_hint) -> bool:
    type_hint = strip_annotated(type_hint)
    return type_hint is Ref or get_origin(type_hint) is Ref
