"""Error taxonomy for model reconciliation and persistence.

Every error aborts the whole run; nothing here is retried. The model file is
only rewritten after a merge has fully succeeded in memory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from schemaledger.domain.model.enums import ElementKind
    from schemaledger.domain.reconciliation.contracts import UidRequestOutcome


class SchemaLedgerError(RuntimeError):
    """Base class for all schemaledger failures."""


class InvalidIdentityError(SchemaLedgerError, ValueError):
    """Raised for malformed, zero or out-of-range ``id:uid`` values."""


class IdentityExhaustedError(SchemaLedgerError):
    """Raised when a local id counter overflows or no free uid can be drawn."""


class IdentityNotFoundError(SchemaLedgerError, LookupError):
    """An explicit uid given by a binding descriptor has no model counterpart."""

    def __init__(
        self, kind: ElementKind, *, uid: int, name: str, entity: str | None = None
    ) -> None:
        self.kind = kind
        self.uid = uid
        self.name = name
        self.entity = entity
        where = f" in entity {entity}" if entity is not None else ""
        super().__init__(
            f"{kind} '{name}'{where} declares uid {uid} which is not present in the model"
        )


class UidRequestError(SchemaLedgerError):
    """A binding descriptor asked for its uid to be reported instead of applied.

    ``outcome`` is either ``UidFound`` (the operator may apply the reported uid
    as a rename, or the suggested one as a reset) or ``UidNotFound``.
    """

    def __init__(
        self,
        kind: ElementKind,
        *,
        name: str,
        outcome: UidRequestOutcome,
        entity: str | None = None,
    ) -> None:
        self.kind = kind
        self.name = name
        self.outcome = outcome
        self.entity = entity
        where = f", entity {entity}" if entity is not None else ""
        super().__init__(
            f"uid annotation value must not be empty ({outcome.describe(kind)}) "
            f"on {kind} {name}{where}"
        )


class RelationTargetMissingError(SchemaLedgerError, LookupError):
    """A standalone relation names a target entity absent from the model."""

    def __init__(self, *, relation: str, entity: str, target: str) -> None:
        self.relation = relation
        self.entity = entity
        self.target = target
        super().__init__(
            f"relation {relation} on entity {entity} targets unknown entity {target}"
        )


class BindingConflictError(SchemaLedgerError):
    """Two binding descriptors resolved to the same model element."""


class ModelValidationError(SchemaLedgerError):
    """The model document violates one of its identity invariants."""


class PersistenceError(SchemaLedgerError):
    """Opening, reading, writing or syncing the model file failed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class ModelLockedError(PersistenceError):
    """Another process (or handle) holds exclusive access to the model file."""
