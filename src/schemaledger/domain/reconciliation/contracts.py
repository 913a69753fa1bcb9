"""Shared reconciliation contract components.

This module holds only:
- the tagged outcome of a uid request (``UidFound`` / ``UidNotFound``)
- the change records collected into a ``MergeReport``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, TypeAlias

if TYPE_CHECKING:
    from schemaledger.domain.model import ElementKind, IdUid


class UidRequestStatus(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True, kw_only=True)
class UidFound:
    """A same-named element exists; its uid is reported, never applied silently.

    ``suggested_uid`` is a fresh uid the operator may apply instead to reset
    the element's stored data (offered for properties only).
    """

    existing_uid: int
    suggested_uid: int | None = None
    status: Literal[UidRequestStatus.FOUND] = UidRequestStatus.FOUND

    def describe(self, kind: ElementKind) -> str:
        return f"model {kind} UID = {self.existing_uid}"


@dataclass(frozen=True, slots=True, kw_only=True)
class UidNotFound:
    status: Literal[UidRequestStatus.NOT_FOUND] = UidRequestStatus.NOT_FOUND

    def describe(self, kind: ElementKind) -> str:
        return f"{kind} not found in the model"


UidRequestOutcome: TypeAlias = UidFound | UidNotFound


class ChangeAction(StrEnum):
    CREATED = "created"
    RENAMED = "renamed"
    RESET = "reset"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True, kw_only=True)
class ModelChange:
    kind: ElementKind
    action: ChangeAction
    path: str
    identity: IdUid
    previous: str | None = None


@dataclass(slots=True)
class MergeReport:
    """What a merge pass changed; used for logging and by caller-side cleanup."""

    changes: list[ModelChange] = field(default_factory=list[ModelChange])
    unmatched_entities: tuple[str, ...] = ()

    def record(self, change: ModelChange) -> None:
        self.changes.append(change)

    def of(self, action: ChangeAction) -> tuple[ModelChange, ...]:
        return tuple(change for change in self.changes if change.action is action)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def summary(self) -> dict[str, int]:
        return {action.value: len(self.of(action)) for action in ChangeAction}
