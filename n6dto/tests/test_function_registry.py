# Copyright (c) 2026 NASK. All rights reserved.

from __future__ import annotations

import functools
import unittest
from typing import (
    Annotated,
    Optional,
)
from unittest.mock import sentinel as sen

from unittest_expander import (
    expand,
    foreach,
    param,
)

from n6dto.exceptions import (
    MappingFunctionResultError,
    MappingFunctionSignatureError,
)
from n6dto.function_registry import (
    NO_RECEIVER,
    FunctionRegistry,
)
from n6dto.type_descriptors import Ref


class FakeMapper:
    pass


class FakeMapperSubclass(FakeMapper):
    pass


class Dto:
    name: str


class Model:
    name: str


#
# Functions used as test inputs (module-level, so that the postponed
# annotations can be resolved)

def model_to_dto(model: Model) -> Dto:
    return sen.dto


def model_to_dto_with_mapper(model: Model, mapper: FakeMapper) -> Dto:
    return (sen.dto_with_mapper, mapper)


def model_to_dto_error_returning(model: Model) -> tuple[Dto, Optional[ValueError]]:
    return model


def model_to_dto_with_mapper_error_returning(
        model: Model,
        mapper: FakeMapper) -> tuple[Dto, Optional[Exception]]:
    return model


def int_to_str_with_default_arg(value: int, base: int = 16) -> str:
    return format(value, 'x' if base == 16 else 'd')


def str_to_annotated_int(value: Annotated[str, 'meta']) -> Annotated[int, 'meta']:
    return int(value)


def inspect_dto(dto: Dto) -> None:
    dto.append('inspect_dto')


def inspect_dto_ref(dto: Ref[Dto]) -> None:
    dto.value = sen.replaced


def inspect_dto_with_model(dto: Dto, model: Model) -> None:
    dto.append(('inspect_dto_with_model', model))


def inspect_dto_with_model_and_mapper(dto: Dto, model: Model, mapper: FakeMapper) -> None:
    dto.append(('inspect_dto_with_model_and_mapper', model, mapper))


def inspect_dto_error_returning(dto: Dto) -> Optional[KeyError]:
    return dto.pop()


class CallableConverter:

    def __call__(self, value: int) -> str:
        return str(value)


@expand
class TestFunctionRegistry_register_conversion(unittest.TestCase):

    def setUp(self):
        self.registry = FunctionRegistry(mapper_class=FakeMapperSubclass)
        self.mapper = FakeMapperSubclass()

    def test_plain(self):
        result = self.registry.register_conversion(model_to_dto)
        self.assertIs(result, model_to_dto)
        convert = self.registry.get_conversion_function(Model, Dto)
        self.assertIs(convert(sen.model, self.mapper), sen.dto)
        self.assertTrue(self.registry.has_custom_functions())

    def test_with_mapper(self):
        self.registry.register_conversion(model_to_dto_with_mapper)
        convert = self.registry.get_conversion_function(Model, Dto)
        self.assertEqual(convert(sen.model, self.mapper), (sen.dto_with_mapper, self.mapper))

    @foreach(
        param(model_to_dto_error_returning),
        param(model_to_dto_with_mapper_error_returning),
    )
    def test_error_returning(self, func):
        self.registry.register_conversion(func)
        convert = self.registry.get_conversion_function(Model, Dto)
        self.assertIs(convert((sen.value, None), self.mapper), sen.value)
        error = ValueError('bad')
        with self.assertRaises(ValueError) as cm:
            convert((sen.value, error), self.mapper)
        self.assertIs(cm.exception, error)
        with self.assertRaises(MappingFunctionResultError):
            convert((sen.value, 'not an exception'), self.mapper)

    def test_extra_param_with_default(self):
        self.registry.register_conversion(int_to_str_with_default_arg)
        convert = self.registry.get_conversion_function(int, str)
        self.assertEqual(convert(255, self.mapper), 'ff')

    def test_annotated_types_are_stripped(self):
        self.registry.register_conversion(str_to_annotated_int)
        convert = self.registry.get_conversion_function(str, int)
        self.assertEqual(convert('42', self.mapper), 42)

    def test_callable_object(self):
        self.registry.register_conversion(CallableConverter())
        convert = self.registry.get_conversion_function(int, str)
        self.assertEqual(convert(42, self.mapper), '42')

    def test_partial(self):
        func = functools.partial(int_to_str_with_default_arg, base=10)
        self.registry.register_conversion(func)
        convert = self.registry.get_conversion_function(int, str)
        self.assertEqual(convert(255, self.mapper), '255')

    def test_used_as_decorator(self):
        @self.registry.register_conversion
        def convert_int(value: int) -> float:
            return value / 2

        self.assertEqual(convert_int(3), 1.5)
        self.assertEqual(self.registry.get_conversion_function(int, float)(3, self.mapper), 1.5)

    def test_replacing(self):
        self.registry.register_conversion(model_to_dto_with_mapper)
        self.registry.register_conversion(model_to_dto)
        convert = self.registry.get_conversion_function(Model, Dto)
        self.assertIs(convert(sen.model, self.mapper), sen.dto)

    def test_replacing_is_logged(self):
        self.registry.register_conversion(model_to_dto)
        with self.assertLogs('n6dto.function_registry', 'DEBUG') as cm:
            self.registry.register_conversion(model_to_dto)
        self.assertEqual(len(cm.output), 2)
        self.assertIn('Replacing the conversion function', cm.output[0])

    def test_lookup_miss(self):
        self.registry.register_conversion(model_to_dto)
        self.assertIsNone(self.registry.get_conversion_function(Dto, Model))
        self.assertIsNone(self.registry.get_conversion_function(Model, str))

    @foreach(
        param(lambda: None).label('no params'),
        param(lambda x: x).label('no annotations'),
    )
    def test_signature_errors_of_lambdas(self, func):
        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(func)

    def test_signature_error_no_return_annotation(self):
        def func(value: int):
            return value

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(func)

    def test_signature_error_none_return_annotation(self):
        def func(value: int) -> None:
            pass

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(func)

    def test_signature_error_unsupported_required_param(self):
        def func(value: int, other: int) -> str:
            return str(value + other)

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(func)

    def test_signature_error_required_keyword_only_param(self):
        def func(value: int, *, other: int) -> str:
            return str(value + other)

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(func)

    def test_signature_error_not_callable(self):
        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(42)

    def test_signature_error_is_type_error(self):
        self.assertTrue(issubclass(MappingFunctionSignatureError, TypeError))

    def test_mapper_param_annotated_with_object_is_not_the_mapper_param(self):
        def func(value: int, mapper: object) -> str:
            return str(value)

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_conversion(func)


class TestFunctionRegistry_register_inspection(unittest.TestCase):

    def setUp(self):
        self.registry = FunctionRegistry(mapper_class=FakeMapper)
        self.mapper = FakeMapper()

    def _call_all(self, dest_value, source_type, source_value=sen.source):
        for inspect_value in self.registry.iter_inspection_functions(Dto, source_type):
            dest_value = inspect_value(dest_value, source_value, self.mapper)
        return dest_value

    def test_plain(self):
        self.assertIs(self.registry.register_inspection(inspect_dto), inspect_dto)
        calls = []
        self.assertIs(self._call_all(calls, Model), calls)
        self.assertEqual(calls, ['inspect_dto'])
        self.assertTrue(self.registry.has_custom_functions())

    def test_ref(self):
        self.registry.register_inspection(inspect_dto_ref)
        self.assertIs(self._call_all(sen.original, Model), sen.replaced)

    def test_with_source_and_mapper(self):
        self.registry.register_inspection(inspect_dto_with_model_and_mapper)
        calls = []
        self._call_all(calls, Model, sen.model)
        self.assertEqual(calls, [('inspect_dto_with_model_and_mapper', sen.model, self.mapper)])

    def test_order_exact_source_first_then_no_receiver(self):
        self.registry.register_inspection(inspect_dto)
        self.registry.register_inspection(inspect_dto_with_model)
        self.registry.register_inspection(inspect_dto)
        calls = []
        self._call_all(calls, Model, sen.model)
        self.assertEqual(calls, [
            ('inspect_dto_with_model', sen.model),
            'inspect_dto',
            'inspect_dto',
        ])

    def test_source_keyed_entries_do_not_fire_for_other_source_types(self):
        self.registry.register_inspection(inspect_dto_with_model)
        self.registry.register_inspection(inspect_dto)
        calls = []
        self._call_all(calls, str, 'abc')
        self.assertEqual(calls, ['inspect_dto'])

    def test_error_returning(self):
        self.registry.register_inspection(inspect_dto_error_returning)
        self.assertEqual(self._call_all([None], Model), [])
        error = KeyError('bad')
        with self.assertRaises(KeyError) as cm:
            self._call_all([error], Model)
        self.assertIs(cm.exception, error)
        with self.assertRaises(MappingFunctionResultError):
            self._call_all([42], Model)

    def test_raising(self):
        def func(dto: Dto) -> None:
            raise ZeroDivisionError

        self.registry.register_inspection(func)
        with self.assertRaises(ZeroDivisionError):
            self._call_all(sen.dto, Model)

    def test_internal_tables(self):
        self.registry.register_inspection(inspect_dto)
        self.registry.register_inspection(inspect_dto_with_model)
        self.assertEqual(set(self.registry._inspection_functions), {Dto})
        self.assertEqual(set(self.registry._inspection_functions[Dto]), {NO_RECEIVER, Model})

    def test_no_functions(self):
        self.assertFalse(self.registry.has_custom_functions())
        self.assertEqual(list(self.registry.iter_inspection_functions(Dto, Model)), [])

    def test_signature_error_no_params(self):
        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_inspection(lambda: None)

    def test_signature_error_bare_ref(self):
        def func(dto: Ref) -> None:
            pass

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_inspection(func)

    def test_signature_error_unannotated_source(self):
        def func(dto: Dto, model) -> None:
            pass

        with self.assertRaises(MappingFunctionSignatureError):
            self.registry.register_inspection(func)
