# Copyright (c) 2026 NASK. All rights reserved.

"""
*n6dto* -- type-directed transcription of values between structurally
similar types (e.g., domain model objects -> *DTOs*).
"""

from n6dto.exceptions import (
    MappingError,
    MappingFunctionResultError,
    MappingFunctionSignatureError,
    NoValidMappingError,
)
from n6dto.field_resolver import (
    EMBEDDED,
    FIELD_METADATA_KEY,
    IGNORE,
    FieldTag,
)
from n6dto.function_registry import NO_RECEIVER
from n6dto.mapper import (
    Mapper,
    map,
)
from n6dto.type_descriptors import (
    Kind,
    Ref,
    TypeDescriptor,
    describe_type,
)


__all__ = (
    'EMBEDDED',
    'FIELD_METADATA_KEY',
    'IGNORE',
    'NO_RECEIVER',
    'FieldTag',
    'Kind',
    'Mapper',
    'MappingError',
    'MappingFunctionResultError',
    'MappingFunctionSignatureError',
    'NoValidMappingError',
    'Ref',
    'TypeDescriptor',
    'describe_type',
    'map',
)
