"""Domain enums (pure, dependency-light).

``PropertyType`` and ``PropertyFlags`` name the storage engine's codes. The
model stores them as plain ints and passes them through verbatim.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag, StrEnum


class ElementKind(StrEnum):
    """Schema element categories sharing one uid namespace."""

    ENTITY = "entity"
    PROPERTY = "property"
    INDEX = "index"
    RELATION = "relation"


class PropertyType(IntEnum):
    BOOL = 1
    BYTE = 2
    SHORT = 3
    CHAR = 4
    INT = 5
    LONG = 6
    FLOAT = 7
    DOUBLE = 8
    STRING = 9
    DATE = 10
    RELATION = 11
    DATE_NANO = 12
    FLEX = 13
    BYTE_VECTOR = 23
    FLOAT_VECTOR = 28
    STRING_VECTOR = 30


class PropertyFlags(IntFlag):
    ID = 1
    NON_PRIMITIVE_TYPE = 2
    NOT_NULL = 4
    INDEXED = 8
    RESERVED = 16
    UNIQUE = 32
    ID_MONOTONIC_SEQUENCE = 64
    ID_SELF_ASSIGNABLE = 128
    INDEX_PARTIAL_SKIP_NULL = 256
    INDEX_PARTIAL_SKIP_ZERO = 512
    VIRTUAL = 1024
    INDEX_HASH = 2048
    INDEX_HASH64 = 4096
    UNSIGNED = 8192
    ID_COMPANION = 16384


# any of these bits means the property owns an index
INDEX_FLAGS = PropertyFlags.INDEXED | PropertyFlags.INDEX_HASH | PropertyFlags.INDEX_HASH64


def has_index_flag(flags: int) -> bool:
    return bool(flags & INDEX_FLAGS)
