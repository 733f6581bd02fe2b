# Copyright (c) 2026 NASK. All rights reserved.

"""
The mapper: transcribing values between structurally similar types
(e.g., from domain model objects into *DTOs*, data transfer objects),
field by field, recursively.

>>> from dataclasses import dataclass
>>> @dataclass
... class Product:
...     name: str
...     country: str
...     price: float
...
>>> @dataclass
... class ProductDTO:
...     name: str = ''
...     price: int = 0
...
>>> dto = ProductDTO()
>>> map(dto, Product('Shoes', 'UK', 17.3))
>>> dto
ProductDTO(name='Shoes', price=17)

For non-struct destinations, use `Ref`:

>>> ref = Ref(type_hint=list[ProductDTO])
>>> map(ref, [Product('Hat', 'IT', 19.7)])
>>> ref.value
[ProductDTO(name='Hat', price=19)]
"""

from typing import Any

from n6dto.composite_transformers import (
    is_mapping_of_sequences,
    map_mapping,
    map_mapping_of_sequences_to_sequence,
    map_mapping_to_sequence,
    map_sequence,
)
from n6dto.exceptions import NoValidMappingError
from n6dto.field_resolver import (
    MISSING,
    StructDraft,
    build_struct,
    collect_fields,
)
from n6dto.function_registry import FunctionRegistry
from n6dto.implicit_conversions import (
    get_implicit_converter,
    is_assignable,
)
from n6dto.log_helpers import get_logger
from n6dto.type_descriptors import (
    Kind,
    Ref,
    describe_type,
    get_struct_class,
    get_struct_field_hints,
    is_dynamic_type,
    is_immutable_struct_class,
    is_optional_type,
    is_union_type,
    new_struct_instance,
    pointee_type,
    resolve_source_type,
    strip_annotated,
    type_repr,
    zero_value,
)


LOGGER = get_logger(__name__)


class Mapper:

    """
    The mapper, i.e., the owner of conversion and inspection functions,
    and the provider of the mapping operations.

    A mapper is created empty; then any number of conversion and/or
    inspection functions can be registered (see: `register_conversion()`
    and `register_inspection()`); then it can be used for any number of
    mapping calls (see: `map()` and `map_to()`).

    Note: registration must not be performed concurrently with mapping
    calls on the same mapper; concurrent mapping calls are safe (no
    per-call state is kept by the mapper).

    >>> mapper = Mapper()
    >>> @mapper.register_conversion
    ... def int_to_str(value: int) -> str:
    ...     return hex(value)
    ...
    >>> mapper.map_to(list[str], [10, 255])
    ['0xa', '0xff']
    """

    def __init__(self):
        self._function_registry = FunctionRegistry(mapper_class=type(self))

    def register_conversion(self, func):
        """
        Register a conversion function (see:
        `FunctionRegistry.register_conversion()`).  Returns `func`.
        """
        return self._function_registry.register_conversion(func)

    def register_inspection(self, func):
        """
        Register an inspection function (see:
        `FunctionRegistry.register_inspection()`).  Returns `func`.
        """
        return self._function_registry.register_inspection(func)

    def has_custom_functions(self) -> bool:
        return self._function_registry.has_custom_functions()

    def map(self, destination, source) -> None:
        """
        Map the `source` into the `destination`.

        Args:
            `destination`:
                Either a mutable struct object (e.g., an instance of a
                non-frozen dataclass) -- to be populated in place, or a
                `Ref` -- then the mapping result is stored as its `value`
                (the destination type is the `Ref`'s `type_hint` or, if
                it is `None`, the type of its current `value`).  Nested
                immutable structs (frozen dataclasses, named tuples) are
                replaced with modified copies.
            `source`:
                The source value; if it is a `Ref`, its `value` is the
                actual source (and its `type_hint`, if not `None`, is the
                declared source type).

        Raises:
            `NoValidMappingError` -- if some types cannot be bridged;
            `TypeError` -- if `destination` is neither a mutable struct
            object nor a `Ref`;
            any exception raised by a conversion/inspection function
            (propagated unchanged).
        """
        source_type = Any
        if isinstance(source, Ref):
            if source.type_hint is not None:
                source_type = source.type_hint
            source = source.value
        if isinstance(destination, Ref):
            if destination.type_hint is not None:
                dest_type = destination.type_hint
            else:
                dest_type = type(destination.value)
            destination.value = self._map_value(dest_type, destination.value, source_type, source)
            return
        dest_type = type(destination)
        dest_class = get_struct_class(dest_type)
        if dest_class is None:
            raise TypeError(
                'the destination should be either a struct object or a `Ref` '
                '(got an instance of {})'.format(type_repr(dest_type)))
        if is_immutable_struct_class(dest_class):
            raise TypeError(
                'an immutable struct object ({}) cannot be populated in '
                'place (use a `Ref` to obtain a new one)'.format(type_repr(dest_type)))
        result = self._map_value(dest_type, destination, source_type, source)
        if result is not destination:
            _copy_fields(dest_type, destination, result)

    def map_to(self, type_hint, source):
        """
        Map the `source` into a new zero value of the given type, and
        return the result.
        """
        ref = Ref(zero_value(type_hint), type_hint)
        self.map(ref, source)
        return ref.value

    #
    # The dispatcher

    def _map_value(self, dst_type, dst_value, src_type, src_value):
        """
        Map `src_value` (of `src_type`) into the destination slot of
        type `dst_type` whose current value is `dst_value`; return the
        new value of the slot.
        """
        dst_type = strip_annotated(dst_type)
        src_type = resolve_source_type(src_type, src_value)
        dst_value = self._dispatch(dst_type, dst_value, src_type, src_value)
        inspected_src_type = _get_inspected_source_type(src_type, src_value)
        for inspect_value in self._function_registry.iter_inspection_functions(
                dst_type, inspected_src_type):
            dst_value = inspect_value(dst_value, src_value, self)
        return dst_value

    def _dispatch(self, dst_type, dst_value, src_type, src_value):
        registry = self._function_registry

        convert = registry.get_conversion_function(src_type, dst_type)
        if convert is not None:
            return convert(src_value, self)

        dst_kind = describe_type(dst_type).kind
        src_descriptor = describe_type(src_type)

        if (not registry.has_custom_functions()
              or not src_descriptor.is_composite
              or _is_opaque_destination(dst_type)):
            if is_assignable(src_type, dst_type):
                return src_value
            implicit_converter = get_implicit_converter(src_type, dst_type)
            if implicit_converter is not None:
                return implicit_converter(src_value)

        if src_descriptor.kind is Kind.POINTER:
            if src_value is None:
                return dst_value
            pointee = resolve_source_type(pointee_type(src_type), src_value)
            return self._dispatch(dst_type, dst_value, pointee, src_value)

        if dst_kind is Kind.POINTER:
            dst_pointee = pointee_type(dst_type)
            if dst_value is None:
                dst_value = zero_value(dst_pointee)
            return self._map_value(dst_pointee, dst_value, src_type, src_value)

        if dst_kind is Kind.STRUCT and src_descriptor.kind is Kind.STRUCT:
            return self._map_struct(dst_type, dst_value, src_type, src_value)

        if dst_kind is Kind.SEQUENCE and src_descriptor.kind is Kind.SEQUENCE:
            return map_sequence(self._map_value, dst_type, src_type, src_value)

        if dst_kind is Kind.MAP and src_descriptor.kind is Kind.MAP:
            return map_mapping(self._map_value, dst_type, src_type, src_value)

        if dst_kind is Kind.SEQUENCE and src_descriptor.kind is Kind.MAP:
            return self._map_mapping_to_sequence(dst_type, src_type, src_value)

        raise NoValidMappingError(dst_type, src_type)

    def _map_struct(self, dst_type, dst_value, src_type, src_value):
        struct_class = get_struct_class(dst_type)
        if dst_value is None:
            dst_value = new_struct_instance(struct_class)
        draft = StructDraft(struct_class, dst_value)
        dst_fields = collect_fields(draft, dst_type)
        src_fields = collect_fields(src_value, src_type)
        for name, dst_field in dst_fields.items():
            src_field = src_fields.get(name)
            if src_field is None:
                continue
            src_field_value = src_field.get()
            if src_field_value is MISSING:
                continue
            dst_field_value = dst_field.get()
            if dst_field_value is MISSING:
                dst_field_value = zero_value(dst_field.type_hint)
            dst_field.set(self._map_value(
                dst_field.type_hint,
                dst_field_value,
                src_field.type_hint,
                src_field_value))
        return build_struct(draft)

    def _map_mapping_to_sequence(self, dst_type, src_type, src_value):
        try:
            return map_mapping_to_sequence(self._map_value, dst_type, src_type, src_value)
        except NoValidMappingError as exc:
            if not is_mapping_of_sequences(src_type, src_value):
                raise
            try:
                return map_mapping_of_sequences_to_sequence(
                    self._map_value, dst_type, src_type, src_value)
            except Exception as flatten_exc:
                LOGGER.debug(
                    'Flattening %s into %s failed (%a); '
                    'reporting the original error: %s',
                    type_repr(src_type), type_repr(dst_type), flatten_exc, exc)
            raise


def _is_opaque_destination(dst_type):
    # (a dynamic or non-optional union destination has no structure to
    # be walked, so it accepts any assignable source value as is)
    return (is_dynamic_type(dst_type)
            or (is_union_type(dst_type) and not is_optional_type(dst_type)))


def _get_inspected_source_type(src_type, src_value):
    # (for a present optional value, inspection functions are looked up
    # by the pointee type, i.e., the type the value was actually mapped
    # from)
    while src_value is not None and describe_type(src_type).kind is Kind.POINTER:
        src_type = resolve_source_type(pointee_type(src_type), src_value)
    return src_type


def _copy_fields(dest_type, destination, result):
    for name, _ in get_struct_field_hints(get_struct_class(dest_type)):
        value = getattr(result, name, MISSING)
        if value is not MISSING:
            setattr(destination, name, value)


def map(destination, source) -> None:
    """
    Map the `source` into the `destination` using a new `Mapper` (with
    no conversion/inspection functions).  See: `Mapper.map()`.
    """
    Mapper().map(destination, source)
