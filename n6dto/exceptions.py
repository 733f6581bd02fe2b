# Copyright (c) 2026 NASK. All rights reserved.

"""
Exceptions raised by the *n6dto* machinery.

Note that exceptions raised (or, in the *error-returning* variants,
returned) by user-defined conversion/inspection functions are *not*
wrapped in any of the classes defined here -- they are propagated
unchanged, so client code can catch them as it would catch them if it
called those functions directly.
"""

from n6dto.type_descriptors import type_repr


class MappingError(Exception):

    """
    The base class for *data-dependent* mapping failures detected by
    the *n6dto* machinery itself.
    """


class NoValidMappingError(MappingError):

    """
    Raised when no dispatch rule (and no conversion function) is able to
    bridge the given destination and source types.

    The constructor takes two arguments: the destination type and the
    source type (type hints); they become the `to_type` and `from_type`
    attributes.  Instances are compared (and hashed) *structurally*, i.e.,
    by the (`to_type`, `from_type`) pair.

    >>> exc = NoValidMappingError(int, str)
    >>> exc.to_type, exc.from_type
    (<class 'int'>, <class 'str'>)
    >>> print(exc)
    no valid mapping found for int from str
    >>> exc == NoValidMappingError(int, str)
    True
    >>> exc == NoValidMappingError(int, bytes)
    False
    >>> len({exc, NoValidMappingError(int, str)})
    1
    """

    def __init__(self, to_type, from_type):
        super().__init__(to_type, from_type)
        self.to_type = to_type
        self.from_type = from_type

    def __str__(self):
        return 'no valid mapping found for {} from {}'.format(
            type_repr(self.to_type),
            type_repr(self.from_type))

    def __eq__(self, other):
        if isinstance(other, NoValidMappingError):
            return (self.to_type, self.from_type) == (other.to_type, other.from_type)
        return NotImplemented

    def __hash__(self):
        return hash((NoValidMappingError, self.to_type, self.from_type))


class MappingFunctionSignatureError(TypeError):

    """
    Raised (immediately, at registration time) when a callable passed
    to `Mapper.register_conversion()` or `Mapper.register_inspection()`
    does not have the required shape (parameters and/or annotations).

    It signals a programming error in the client code, not a problem
    with the data being mapped.
    """


class MappingFunctionResultError(TypeError):

    """
    Raised when an *error-returning* conversion/inspection function
    returned, as its error part, something that is neither `None` nor
    an exception instance.

    It signals a programming error in that function.
    """
