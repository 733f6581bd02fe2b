# Copyright (c) 2026 NASK. All rights reserved.

"""
Struct field resolution: flattening a struct (together with its
embedded structs) into a *field map* -- a dict that maps field names to
`FieldRef` objects.

Fields declared in base classes are collected as well (inheritance is
the natural form of embedding).  Additionally, a field can be *tagged*,
either with the `typing.Annotated[...]` form:

>>> from dataclasses import dataclass
>>> from typing import Annotated
>>> @dataclass
... class Audit:
...     created_by: str = ''
...
>>> @dataclass
... class Document:
...     title: str = ''
...     audit: Annotated[Audit, EMBEDDED] = None
...     secret: Annotated[str, IGNORE] = ''
...
>>> sorted(collect_fields(Document('Foo', Audit('bar')), Document))
['created_by', 'title']

...or, for dataclasses, with the `dataclasses.field()`'s metadata:

>>> from dataclasses import field
>>> @dataclass
... class Account:
...     login: str = ''
...     password: str = field(default='', metadata={FIELD_METADATA_KEY: 'ignore'})
...
>>> list(collect_fields(Account('foo', 'bar'), Account))
['login']
"""

import dataclasses
import functools
from typing import (
    Any,
    NamedTuple,
)

from n6dto.class_helpers import (
    NamedSentinel,
    attr_repr,
)
from n6dto.type_descriptors import (
    Kind,
    describe_type,
    get_annotated_metadata,
    get_struct_class,
    get_struct_field_hints,
    is_immutable_struct_class,
    new_struct_instance,
    pointee_type,
    strip_annotated,
    type_repr,
)


#: The key of `dataclasses.field()`'s metadata (its value should be a
#: string of comma-separated tag flags, e.g., `'ignore'`).
FIELD_METADATA_KEY = 'dto'

#: A special default value returned by `FieldRef.get()` if the field
#: is not set.
MISSING = NamedSentinel('missing')


class FieldTag:

    """
    A field tag -- to be placed in the metadata of a field's annotation
    (`typing.Annotated[<type>, <field tag>]`).

    >>> FieldTag('ignore') == IGNORE
    True
    >>> FieldTag('ignore', 'embedded').embedded
    True
    >>> FieldTag('ignore', 'embedded').ignore
    True
    >>> FieldTag('whatever')
    Traceback (most recent call last):
      ...
    ValueError: unknown field tag flag(s): 'whatever'
    """

    KNOWN_FLAGS = frozenset({'ignore', 'embedded'})

    __slots__ = ('flags',)

    def __init__(self, *flags):
        unknown = sorted(set(flags) - self.KNOWN_FLAGS)
        if unknown:
            raise ValueError('unknown field tag flag(s): {}'.format(
                ', '.join(map(ascii, unknown))))
        self.flags = frozenset(flags)

    @property
    def ignore(self) -> bool:
        return 'ignore' in self.flags

    @property
    def embedded(self) -> bool:
        return 'embedded' in self.flags

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__qualname__,
            ', '.join(map(repr, sorted(self.flags))))

    def __eq__(self, other):
        if isinstance(other, FieldTag):
            return self.flags == other.flags
        return NotImplemented

    def __hash__(self):
        return hash(self.flags)


IGNORE = FieldTag('ignore')
EMBEDDED = FieldTag('embedded')


class FieldSpec(NamedTuple):
    name: str
    type_hint: Any
    ignored: bool
    embedded: bool


class FieldRef:

    """
    A reference to a field of a particular struct object.

    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Point:
    ...     x: int = 0
    ...
    >>> point = Point(3)
    >>> ref = FieldRef(point, 'x', int)
    >>> ref.get()
    3
    >>> ref.set(42)
    >>> point
    Point(x=42)
    """

    __slots__ = ('owner', 'name', 'type_hint')

    def __init__(self, owner, name, type_hint):
        self.owner = owner
        self.name = name
        self.type_hint = type_hint

    __repr__ = attr_repr('owner', 'name', 'type_hint')

    def get(self, default=MISSING):
        return getattr(self.owner, self.name, default)

    def set(self, value):
        setattr(self.owner, self.name, value)


def parse_tag_flags(flags_string):
    """
    >>> sorted(parse_tag_flags('ignore, embedded'))
    ['embedded', 'ignore']
    >>> parse_tag_flags('')
    frozenset()
    >>> parse_tag_flags('ignroe')
    Traceback (most recent call last):
      ...
    ValueError: unknown field tag flag(s): 'ignroe'
    """
    flags = filter(None, (flag.strip() for flag in flags_string.split(',')))
    return FieldTag(*flags).flags


@functools.lru_cache(maxsize=1024)
def get_field_specs(struct_class) -> tuple:
    """
    Get a tuple of `FieldSpec` objects for the given struct class.

    Raises:
        `TypeError` -- if a field tagged as embedded is not of a struct
        type (possibly an optional one);
        `ValueError` -- if a field's metadata contains an unknown tag
        flag.
    """
    if dataclasses.is_dataclass(struct_class):
        metadata_by_name = {
            field.name: field.metadata
            for field in dataclasses.fields(struct_class)}
    else:
        metadata_by_name = {}
    specs = []
    for name, hint in get_struct_field_hints(struct_class):
        flags = set()
        for item in get_annotated_metadata(hint):
            if isinstance(item, FieldTag):
                flags.update(item.flags)
        metadata = metadata_by_name.get(name)
        if metadata:
            flags.update(parse_tag_flags(metadata.get(FIELD_METADATA_KEY, '')))
        spec = FieldSpec(
            name=name,
            type_hint=strip_annotated(hint),
            ignored=('ignore' in flags),
            embedded=('embedded' in flags))
        if spec.embedded and not spec.ignored and _get_embedded_struct_class(spec) is None:
            raise TypeError(
                'field {!a} of {} is tagged as embedded but its type, {}, '
                'is not a struct type'.format(
                    name,
                    type_repr(struct_class),
                    type_repr(spec.type_hint)))
        specs.append(spec)
    return tuple(specs)


def collect_fields(struct_value, type_hint) -> dict:
    """
    Build the field map of the given struct object (or `StructDraft`).

    Args:
        `struct_value`:
            The struct object or draft.
        `type_hint`:
            The struct type (for a source struct: its declared type).

    Returns:
        A `dict` that maps field names to `FieldRef` objects (on name
        collisions, the last declaration wins).

    An embedded struct that is `None` (or unset) is skipped.  Note that
    a `StructDraft` never contains such embedded structs (see below).
    """
    field_map = {}
    _collect_fields_into(field_map, struct_value, get_struct_class(type_hint))
    return field_map


def _collect_fields_into(field_map, struct_value, struct_class):
    for spec in get_field_specs(struct_class):
        if spec.ignored:
            continue
        if spec.embedded:
            embedded_value = getattr(struct_value, spec.name, None)
            if embedded_value is None:
                continue
            _collect_fields_into(field_map, embedded_value, _get_embedded_struct_class(spec))
        else:
            field_map[spec.name] = FieldRef(struct_value, spec.name, spec.type_hint)


def _get_embedded_struct_class(spec):
    type_hint = spec.type_hint
    if describe_type(type_hint).kind is Kind.POINTER:
        type_hint = pointee_type(type_hint)
    return get_struct_class(type_hint)


#
# Destination drafts

class StructDraft:

    """
    A mutable working copy of the fields of a destination struct object.

    Fields of a draft are read and assigned as its attributes.  Each
    embedded struct is represented by a nested draft (if it is `None`
    or unset, a new zero struct is allocated for it).  The draft is
    turned into the resultant struct object by `build_struct()`: a
    mutable struct object is updated in place, whereas an immutable one
    (a frozen dataclass instance or a named tuple) is replaced with a
    modified copy.

    >>> from typing import NamedTuple
    >>> class Point(NamedTuple):
    ...     x: int
    ...     y: int
    ...
    >>> point = Point(1, 2)
    >>> draft = StructDraft(Point, point)
    >>> draft.x = 42
    >>> build_struct(draft)
    Point(x=42, y=2)
    >>> point
    Point(x=1, y=2)
    """

    # (note: field names never start with `_`)
    __slots__ = ('_struct_class', '_struct_value', '_values')

    def __init__(self, struct_class, struct_value):
        values = {}
        for spec in get_field_specs(struct_class):
            if spec.ignored:
                continue
            value = getattr(struct_value, spec.name, MISSING)
            if spec.embedded:
                embedded_class = _get_embedded_struct_class(spec)
                if value is MISSING or value is None:
                    value = new_struct_instance(embedded_class)
                value = StructDraft(embedded_class, value)
            if value is not MISSING:
                values[spec.name] = value
        object.__setattr__(self, '_struct_class', struct_class)
        object.__setattr__(self, '_struct_value', struct_value)
        object.__setattr__(self, '_values', values)

    __repr__ = attr_repr('_struct_class', '_values')

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name, value):
        self._values[name] = value


def build_struct(draft):
    """
    Apply the given `StructDraft` (including any nested ones) to the
    struct object it was made from; return the resultant struct object.
    """
    struct_class = draft._struct_class
    struct_value = draft._struct_value
    values = {
        name: (build_struct(value) if isinstance(value, StructDraft) else value)
        for name, value in draft._values.items()}
    if not is_immutable_struct_class(struct_class):
        for name, value in values.items():
            setattr(struct_value, name, value)
        return struct_value
    if dataclasses.is_dataclass(struct_class):
        init_names = {field.name for field in dataclasses.fields(struct_class) if field.init}
        result = dataclasses.replace(struct_value, **{
            name: value for name, value in values.items()
            if name in init_names})
        for name, value in values.items():
            if name not in init_names:
                object.__setattr__(result, name, value)
        return result
    return struct_value._replace(**values)
