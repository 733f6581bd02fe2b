# Copyright (c) 2026 NASK. All rights reserved.

"""
The registry of user-supplied *conversion functions* and *inspection
functions*.

The signature of a registered function is introspected just once (at
registration time): parameter/return annotations determine the type
keys the function is registered under, and the shape of a closure
that invokes the function -- so a malformed function is rejected
immediately (with `MappingFunctionSignatureError`), never at mapping
time.
"""

import functools
import inspect
import typing
from collections.abc import (
    Callable,
    Iterator,
)
from typing import (
    Any,
    Optional,
    get_args,
    get_origin,
)

from n6dto.class_helpers import NamedSentinel
from n6dto.exceptions import (
    MappingFunctionResultError,
    MappingFunctionSignatureError,
)
from n6dto.log_helpers import get_logger
from n6dto.type_descriptors import (
    Kind,
    NoneType,
    Ref,
    describe_type,
    is_ref_type,
    pointee_type,
    strip_annotated,
    type_repr,
)


LOGGER = get_logger(__name__)


#: The key of inspection functions that do not declare the source
#: parameter (they are invoked regardless of the source type).
NO_RECEIVER = NamedSentinel('no receiver')


ConversionClosure = Callable[[Any, Any], Any]     # (source value, mapper) -> destination value
InspectionClosure = Callable[[Any, Any, Any], Any]  # (dest value, source value, mapper) -> dest value

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class FunctionRegistry:

    """
    The container of conversion and inspection functions (owned by a
    `Mapper` instance).

    Constructor args/kwargs:
        `mapper_class` (default: None):
            The class of the owning mapper.  A parameter (in the proper
            position) annotated with that class, or with any of its base
            classes other than `object`, is recognized as the *mapper
            parameter* (the active mapper will be passed in).

    The conversion table maps source types to dicts that map destination
    types to conversion closures; the inspection table maps destination
    types to dicts that map source types (or `NO_RECEIVER`) to lists of
    inspection closures.
    """

    def __init__(self, mapper_class=None):
        self._mapper_class = mapper_class
        self._conversion_functions = {}   # type: dict[Any, dict[Any, ConversionClosure]]
        self._inspection_functions = {}   # type: dict[Any, dict[Any, list[InspectionClosure]]]

    #
    # Registration

    def register_conversion(self, func):
        """
        Register a conversion function.

        The function's first positional parameter must be annotated with
        the *source type*, and its return annotation must be the
        *destination type* (not `None`).  Optionally, the second
        parameter can be annotated with the mapper class -- then the
        active mapper is passed in (so that the function can, e.g., map
        nested values).

        A return annotation `tuple[D, Optional[E]]` (where `E` is an
        exception class) specifies an *error-returning* function: it
        returns a `(value, error)` pair; then `D` is the destination
        type, and a returned error that is not `None` is raised.

        If a conversion function for the same (source type, destination
        type) pair has already been registered, it is replaced.

        Returns the given function (so this method can be used as a
        decorator).

        Raises:
            `MappingFunctionSignatureError` -- if the function does not
            have the required shape.
        """
        params, return_type = _get_signature_types(func)
        if not params or params[0].annotation is inspect.Parameter.empty:
            raise MappingFunctionSignatureError(
                'conversion function {!a} should have at least one positional '
                'parameter annotated with the source type'.format(func))
        if return_type is inspect.Parameter.empty or return_type is NoneType:
            raise MappingFunctionSignatureError(
                'conversion function {!a} should have a return annotation '
                'specifying the destination type'.format(func))
        source_type = strip_annotated(params[0].annotation)
        takes_mapper = len(params) > 1 and self._is_mapper_param(params[1])
        _verify_no_further_required_params(func, params[(2 if takes_mapper else 1):])
        dest_type, returns_error = _split_error_returning_type(return_type)
        dest_type = strip_annotated(dest_type)

        def convert(source_value, mapper):
            args = [source_value]
            if takes_mapper:
                args.append(mapper)
            result = func(*args)
            if returns_error:
                value, error = result
                _raise_returned_error(func, error)
                return value
            return result

        functions_by_dest_type = self._conversion_functions.setdefault(source_type, {})
        if dest_type in functions_by_dest_type:
            LOGGER.debug(
                'Replacing the conversion function for %s -> %s with %a',
                type_repr(source_type), type_repr(dest_type), func)
        functions_by_dest_type[dest_type] = convert
        LOGGER.debug(
            'Registered conversion function %a (%s -> %s)',
            func, type_repr(source_type), type_repr(dest_type))
        return func

    def register_inspection(self, func):
        """
        Register an inspection function.

        The function's first positional parameter must be annotated
        with either `Ref[D]` (then the function receives a `Ref` cell
        whose `value` it may replace) or just `D` (then the function
        receives the destination value itself) -- where `D` is the
        *destination type*.  If the function has a second parameter,
        it must be annotated with the *source type* (then the function
        is invoked only for sources of that type); otherwise the
        function is invoked regardless of the source type.  Optionally,
        the third parameter can be annotated with the mapper class --
        then the active mapper is passed in.

        A return annotation being an exception class (or an optional
        one) specifies an *error-returning* function: a returned error
        that is not `None` is raised.  Any other return value is
        ignored.

        Inspection functions registered under the same key are invoked
        in the order of registration.

        Returns the given function (so this method can be used as a
        decorator).

        Raises:
            `MappingFunctionSignatureError` -- if the function does not
            have the required shape.
        """
        params, return_type = _get_signature_types(func)
        if not params or params[0].annotation is inspect.Parameter.empty:
            raise MappingFunctionSignatureError(
                'inspection function {!a} should have at least one positional '
                'parameter annotated with the destination type'.format(func))
        first_type = strip_annotated(params[0].annotation)
        takes_ref = is_ref_type(first_type)
        if takes_ref:
            ref_args = get_args(first_type)
            if not ref_args:
                raise MappingFunctionSignatureError(
                    'inspection function {!a} should have its first parameter '
                    'annotated with `Ref[<destination type>]`, not just with '
                    '`Ref`'.format(func))
            dest_type = strip_annotated(ref_args[0])
        else:
            dest_type = first_type
        if len(params) > 1:
            if params[1].annotation is inspect.Parameter.empty:
                raise MappingFunctionSignatureError(
                    'the second parameter of inspection function {!a} should be '
                    'annotated with the source type'.format(func))
            receiver = strip_annotated(params[1].annotation)
            takes_source = True
        else:
            receiver = NO_RECEIVER
            takes_source = False
        takes_mapper = len(params) > 2 and self._is_mapper_param(params[2])
        _verify_no_further_required_params(func, params[(3 if takes_mapper else 2):])
        returns_error = (return_type is not inspect.Parameter.empty
                         and _is_exception_type(return_type))

        def inspect_value(dest_value, source_value, mapper):
            target = Ref(dest_value, dest_type) if takes_ref else dest_value
            args = [target]
            if takes_source:
                args.append(source_value)
            if takes_mapper:
                args.append(mapper)
            result = func(*args)
            if returns_error:
                _raise_returned_error(func, result)
            return target.value if takes_ref else dest_value

        functions_by_receiver = self._inspection_functions.setdefault(dest_type, {})
        functions_by_receiver.setdefault(receiver, []).append(inspect_value)
        LOGGER.debug(
            'Registered inspection function %a (for %s, source: %s)',
            func,
            type_repr(dest_type),
            receiver if receiver is NO_RECEIVER else type_repr(receiver))
        return func

    #
    # Lookups

    def has_custom_functions(self) -> bool:
        return bool(self._conversion_functions or self._inspection_functions)

    def get_conversion_function(self, source_type, dest_type) -> Optional[ConversionClosure]:
        functions_by_dest_type = self._conversion_functions.get(source_type)
        if functions_by_dest_type is None:
            return None
        return functions_by_dest_type.get(dest_type)

    def iter_inspection_functions(self, dest_type, source_type) -> Iterator[InspectionClosure]:
        """
        Yield inspection closures for the given destination type: first
        those registered for the exact source type, then those that do
        not request the source argument.
        """
        functions_by_receiver = self._inspection_functions.get(dest_type)
        if not functions_by_receiver:
            return
        yield from functions_by_receiver.get(source_type, ())
        yield from functions_by_receiver.get(NO_RECEIVER, ())

    #
    # Internal helpers

    def _is_mapper_param(self, param) -> bool:
        annotation = strip_annotated(param.annotation)
        return (self._mapper_class is not None
                and isinstance(annotation, type)
                and get_origin(annotation) is None
                and annotation is not object
                and issubclass(self._mapper_class, annotation))


def _get_signature_types(func):
    """
    Get a (<list of positional parameters, with annotations resolved>,
    <resolved return annotation>) pair.
    """
    if not callable(func):
        raise MappingFunctionSignatureError('{!a} is not callable'.format(func))
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError) as exc:
        raise MappingFunctionSignatureError(
            'cannot inspect the signature of {!a} ({})'.format(func, exc)) from exc
    resolved = _get_resolved_annotations(func)
    params = []
    for param in signature.parameters.values():
        if param.kind in _POSITIONAL_KINDS:
            params.append(param.replace(annotation=resolved.get(param.name, param.annotation)))
        elif (param.kind is inspect.Parameter.KEYWORD_ONLY
              and param.default is inspect.Parameter.empty):
            raise MappingFunctionSignatureError(
                'function {!a} has a required keyword-only parameter '
                '{!a}'.format(func, param.name))
    return_type = resolved.get('return', signature.return_annotation)
    for annotation in [param.annotation for param in params] + [return_type]:
        if isinstance(annotation, str):
            raise MappingFunctionSignatureError(
                'function {!a} has an unresolvable annotation: '
                '{!a}'.format(func, annotation))
    if return_type is None:
        return_type = NoneType
    return params, return_type


def _get_resolved_annotations(func) -> dict:
    if inspect.isroutine(func):
        target = func
    elif isinstance(func, functools.partial):
        target = func.func
    else:
        # (e.g., an instance of a class that defines `__call__()`)
        target = getattr(type(func), '__call__', func)
    try:
        return typing.get_type_hints(target, include_extras=True)
    except TypeError:
        # (no annotations to resolve here; those included in the
        # signature will be used as they are)
        return {}
    except NameError as exc:
        raise MappingFunctionSignatureError(
            'cannot resolve the annotations of {!a} ({})'.format(func, exc)) from exc


def _verify_no_further_required_params(func, remaining_params):
    for param in remaining_params:
        if param.default is inspect.Parameter.empty:
            raise MappingFunctionSignatureError(
                'function {!a} has an unsupported required parameter '
                '{!a}'.format(func, param.name))


def _split_error_returning_type(return_type):
    """
    >>> _split_error_returning_type(tuple[int, Optional[ValueError]])
    (<class 'int'>, True)
    >>> _split_error_returning_type(tuple[int, str])
    (tuple[int, str], False)
    >>> _split_error_returning_type(int)
    (<class 'int'>, False)
    """
    stripped = strip_annotated(return_type)
    if get_origin(stripped) is tuple:
        args = get_args(stripped)
        if len(args) == 2 and _is_exception_type(args[1]):
            return args[0], True
    return return_type, False


def _is_exception_type(type_hint) -> bool:
    type_hint = strip_annotated(type_hint)
    if describe_type(type_hint).kind is Kind.POINTER:
        type_hint = pointee_type(type_hint)
    return isinstance(type_hint, type) and issubclass(type_hint, BaseException)


def _raise_returned_error(func, error):
    if error is None:
        return
    if isinstance(error, BaseException):
        raise error
    raise MappingFunctionResultError(
        'function {!a} returned {!a} where an exception or None was '
        'expected'.format(func, error))
