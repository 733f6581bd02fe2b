# Copyright (c) 2026 NASK. All rights reserved.

import decimal
import enum
import fractions
import unittest
from collections.abc import (
    Mapping,
    Sequence,
)
from typing import (
    Any,
    NewType,
    Optional,
    Union,
)

from unittest_expander import (
    expand,
    foreach,
    param,
)

from n6dto.implicit_conversions import (
    get_implicit_converter,
    is_assignable,
)
from n6dto.tests._generic_helpers import TestCaseMixin
from n6dto.type_descriptors import NoneType


UserId = NewType('UserId', int)
Email = NewType('Email', str)


class Code(str):
    pass


class Level(enum.IntEnum):
    LOW = 1


class Base:
    pass


class Derived(Base):
    pass


@expand
class Test__is_assignable(unittest.TestCase):

    @foreach(
        param(int, int),
        param(bool, int),
        param(Derived, Base),
        param(str, Any),
        param(list[int], Any),
        param(list[int], object),
        param(list[int], list[int]),
        param(list[int], Sequence[int]),
        param(list[int], list),
        param(list[int], Sequence),
        param(list, list[Any]),
        param(dict[str, int], Mapping[str, int]),
        param(tuple[int, ...], tuple[Any, ...]),
        param(NoneType, Optional[int]),
        param(Optional[int], Optional[int]),
        param(int, Union[int, str]),
        param(UserId, UserId),
    )
    def test_assignable(self, src_type, dst_type):
        self.assertTrue(is_assignable(src_type, dst_type))

    @foreach(
        param(float, int),
        param(str, int),
        param(Base, Derived),
        param(int, Optional[int]),
        param(Optional[int], int),
        param(list, list[int]),
        param(list[int], list[str]),
        param(list[int], tuple[int, ...]),
        param(dict[str, int], list[int]),
        param(bytes, Union[int, str]),
        param(UserId, int),
        param(int, UserId),
    )
    def test_not_assignable(self, src_type, dst_type):
        self.assertFalse(is_assignable(src_type, dst_type))


@expand
class Test__get_implicit_converter(TestCaseMixin, unittest.TestCase):

    @foreach(
        param(float, int, 17.3, 17),
        param(float, int, -17.9, -17),
        param(int, float, 5, 5.0),
        param(bool, float, True, 1.0),
        param(int, decimal.Decimal, 5, decimal.Decimal(5)),
        param(decimal.Decimal, int, decimal.Decimal('9.99'), 9),
        param(decimal.Decimal, float, decimal.Decimal('0.5'), 0.5),
        param(fractions.Fraction, float, fractions.Fraction(1, 4), 0.25),
        param(float, fractions.Fraction, 0.25, fractions.Fraction(1, 4)),
        param(int, complex, 2, 2+0j),
        param(str, bytes, 'zażółć', 'zażółć'.encode('utf-8')),
        param(str, bytearray, 'abc', bytearray(b'abc')),
        param(bytes, str, b'abc', 'abc'),
        param(bytes, str, b'\xdd', '\udcdd'),
        param(bytearray, str, bytearray(b'abc'), 'abc'),
        param(bytes, bytearray, b'abc', bytearray(b'abc')),
        param(bytearray, bytes, bytearray(b'abc'), b'abc'),
        param(str, Code, 'XYZ', Code('XYZ')),
        param(int, UserId, 42, 42),
        param(UserId, int, 42, 42),
        param(Email, str, 'foo@example.org', 'foo@example.org'),
        param(Level, int, Level.LOW, Level.LOW),
    )
    def test_converter(self, src_type, dst_type, value, expected):
        convert = get_implicit_converter(src_type, dst_type)
        self.assertIsNotNone(convert)
        self.assertEqualIncludingTypes(convert(value), expected)

    @foreach(
        param(str, int),
        param(str, float),
        param(int, str),
        param(float, str),
        param(complex, int),
        param(int, bool),
        param(int, Level),
        param(list[int], list[float]),
        param(Optional[int], int),
        param(str, Any),
    )
    def test_no_converter(self, src_type, dst_type):
        self.assertIsNone(get_implicit_converter(src_type, dst_type))
