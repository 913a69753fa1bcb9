"""Model document types and identity bookkeeping."""

from __future__ import annotations

from .document import (
    DEFAULT_NOTES,
    FILE_FORMAT_VERSION,
    LEGACY_MODEL_VERSION,
    MINIMUM_PARSER_VERSION,
    MODEL_VERSION,
    ModelDocument,
    ModelEntity,
    ModelProperty,
    StandaloneRelation,
    same_name,
)
from .enums import INDEX_FLAGS, ElementKind, PropertyFlags, PropertyType, has_index_flag
from .identity import MAX_ID, MAX_UID, UNSET, IdUid, latest
from .uid_pool import UidPool

__all__ = [
    "DEFAULT_NOTES",
    "FILE_FORMAT_VERSION",
    "INDEX_FLAGS",
    "LEGACY_MODEL_VERSION",
    "MAX_ID",
    "MAX_UID",
    "MINIMUM_PARSER_VERSION",
    "MODEL_VERSION",
    "UNSET",
    "ElementKind",
    "IdUid",
    "ModelDocument",
    "ModelEntity",
    "ModelProperty",
    "PropertyFlags",
    "PropertyType",
    "StandaloneRelation",
    "UidPool",
    "has_index_flag",
    "latest",
    "same_name",
]
