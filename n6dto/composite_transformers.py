# Copyright (c) 2026 NASK. All rights reserved.

"""
Transformers of composite (container) values.

Each of the `map_*()` functions takes, as the first argument, the
recursive *map value* callable -- `map_value(dst_type, dst_value,
src_type, src_value) -> new dst value` -- which is applied to every
element; each returns a new destination container (of the class
denoted by the destination type; `list`/`dict` for abstract ones).
Every destination element starts as the zero value of its declared
type.  The first exception aborts the transformation.

>>> def map_value(dst_type, dst_value, src_type, src_value):
...     return dst_type(src_value)
...
>>> map_sequence(map_value, list[str], list[int], [1, 2, 3])
['1', '2', '3']
>>> map_mapping(map_value, dict[str, float], dict[int, int], {1: 2})
{'1': 2.0}
>>> map_mapping_to_sequence(map_value, list[str], dict[int, int], {1: 2, 3: 4})
['2', '4']
>>> map_mapping_of_sequences_to_sequence(
...     map_value, list[str], dict[str, list[int]], {'a': [1, 2], 'b': [3]})
['1', '2', '3']
"""

from collections.abc import Callable
from typing import Any

from n6dto.exceptions import NoValidMappingError
from n6dto.type_descriptors import (
    Kind,
    describe_type,
    get_fixed_tuple_length,
    is_dynamic_type,
    make_mapping,
    make_sequence,
    mapping_item_types,
    sequence_item_type,
    zero_value,
)


MapValue = Callable[[Any, Any, Any, Any], Any]


def map_sequence(map_value: MapValue, dst_type, src_type, src_value):
    """Sequence -> Sequence (of the same length)."""
    _verify_length(dst_type, src_type, len(src_value))
    return make_sequence(dst_type, [
        _map_item(map_value,
                  sequence_item_type(dst_type, index),
                  sequence_item_type(src_type, index),
                  src_item)
        for index, src_item in enumerate(src_value)])


def map_mapping(map_value: MapValue, dst_type, src_type, src_value):
    """Map -> Map (of the same cardinality, unless mapped keys collide)."""
    dst_key_type, dst_value_type = mapping_item_types(dst_type)
    src_key_type, src_value_type = mapping_item_types(src_type)
    return make_mapping(dst_type, [
        (_map_item(map_value, dst_key_type, src_key_type, src_key),
         _map_item(map_value, dst_value_type, src_value_type, src_item))
        for src_key, src_item in src_value.items()])


def map_mapping_to_sequence(map_value: MapValue, dst_type, src_type, src_value):
    """Map -> Sequence (of the mapping's values; keys are discarded)."""
    _verify_length(dst_type, src_type, len(src_value))
    _, src_value_type = mapping_item_types(src_type)
    return make_sequence(dst_type, [
        _map_item(map_value,
                  sequence_item_type(dst_type, index),
                  src_value_type,
                  src_item)
        for index, src_item in enumerate(src_value.values())])


def map_mapping_of_sequences_to_sequence(map_value: MapValue, dst_type, src_type, src_value):
    """
    Map of Sequences -> Sequence (flattened: in the order of the mapping's
    iteration and then the order of each inner sequence).
    """
    _, src_inner_type = mapping_item_types(src_type)
    src_pairs = [
        (sequence_item_type(src_inner_type, inner_index), src_item)
        for inner in src_value.values()
        for inner_index, src_item in enumerate(inner)]
    _verify_length(dst_type, src_type, len(src_pairs))
    return make_sequence(dst_type, [
        _map_item(map_value,
                  sequence_item_type(dst_type, index),
                  src_item_type,
                  src_item)
        for index, (src_item_type, src_item) in enumerate(src_pairs)])


def is_mapping_of_sequences(src_type, src_value) -> bool:
    """
    Tell whether the values of the given source mapping are sequences
    (judging by the declared value type, or -- if it is not declared --
    by the runtime types of the actual values).

    >>> is_mapping_of_sequences(dict[str, list[int]], {})
    True
    >>> is_mapping_of_sequences(dict, {'a': [1], 'b': (2, 3)})
    True
    >>> is_mapping_of_sequences(dict, {'a': [1], 'b': 'xyz'})
    False
    >>> is_mapping_of_sequences(dict, {})
    False
    """
    _, src_value_type = mapping_item_types(src_type)
    if not is_dynamic_type(src_value_type):
        return describe_type(src_value_type).kind is Kind.SEQUENCE
    return bool(src_value) and all(
        describe_type(type(item)).kind is Kind.SEQUENCE
        for item in src_value.values())


def _map_item(map_value, dst_item_type, src_item_type, src_item):
    return map_value(dst_item_type, zero_value(dst_item_type), src_item_type, src_item)


def _verify_length(dst_type, src_type, length):
    fixed_length = get_fixed_tuple_length(dst_type)
    if fixed_length is not None and fixed_length != length:
        raise NoValidMappingError(dst_type, src_type)
