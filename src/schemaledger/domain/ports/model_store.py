"""Persistence contract for the model document."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from schemaledger.domain.model import ModelDocument


@runtime_checkable
class ModelStore(Protocol):
    """Exclusive handle on one persisted model document for the length of a run."""

    @property
    def document(self) -> ModelDocument: ...

    def write(self) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> ModelStore: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...


ModelStoreFactory: TypeAlias = Callable[[Path], ModelStore]
