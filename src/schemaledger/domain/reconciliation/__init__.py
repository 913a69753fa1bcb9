"""Reconciliation of binding descriptors with the persisted model document.

Flow:
1) resolve every binding entity to a model entity (uid, then name, then create)
2) merge each entity: name, properties, indexes, standalone relations
3) prune properties and relations the binding no longer declares
4) report unmatched entities; removing them is left to the caller
"""

from __future__ import annotations

from .contracts import (
    ChangeAction,
    MergeReport,
    ModelChange,
    UidFound,
    UidNotFound,
    UidRequestOutcome,
    UidRequestStatus,
)
from .engine import merge_binding_with_model, prune_unmatched_entities

__all__ = [
    "ChangeAction",
    "MergeReport",
    "ModelChange",
    "UidFound",
    "UidNotFound",
    "UidRequestOutcome",
    "UidRequestStatus",
    "merge_binding_with_model",
    "prune_unmatched_entities",
]
