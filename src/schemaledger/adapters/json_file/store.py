"""File-backed model store holding an exclusive lock for the whole run.

The model file is opened read/write (never truncated on open) and locked with
the platform's non-blocking exclusive lock: ``fcntl.flock`` on POSIX,
``msvcrt.locking`` on Windows. A second store on the same file fails with
``ModelLockedError`` instead of interleaving writes. The lock lives as long as
the open handle, so ``close()`` (or leaving the ``with`` block on any path)
releases it, and a crashed process releases it with its descriptors.

``write()`` truncates and rewrites the file in place followed by ``fsync``. The
rewrite is not atomic: a crash between truncate and the completed write can
leave an empty or partial file, which the next load reports as unreadable.
"""

from __future__ import annotations

import os
from logging import getLogger
from typing import IO, TYPE_CHECKING, Literal

from pydantic import ValidationError

from schemaledger.domain.errors import (
    InvalidIdentityError,
    ModelLockedError,
    PersistenceError,
)
from schemaledger.domain.model import ModelDocument

from .translator import dump_model_file, load_model_file

if os.name == "nt":
    import msvcrt

    def _lock(handle: IO[bytes]) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock(handle: IO[bytes]) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _lock(handle: IO[bytes]) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _unlock(handle: IO[bytes]) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

log = getLogger(__name__)


class JsonModelStore:
    """Owns the open, locked handle of one model file and its loaded document."""

    def __init__(self, path: Path, handle: IO[bytes], document: ModelDocument) -> None:
        self._path = path
        self._handle: IO[bytes] | None = handle
        self._document = document

    @classmethod
    def load_or_create(cls, path: Path) -> JsonModelStore:
        """Open and lock ``path``; create it holding an empty document if missing."""

        if path.exists():
            return cls._load(path)
        return cls._create(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def document(self) -> ModelDocument:
        return self._document

    @property
    def closed(self) -> bool:
        return self._handle is None

    def write(self) -> None:
        """Serialise the document, truncate the file and rewrite it in place, then sync."""

        handle = self._require_handle()
        data = dump_model_file(self._document)
        try:
            handle.seek(0)
            handle.truncate(0)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        except OSError as exc:
            raise PersistenceError(
                f"can't write file {self._path}: {exc}", path=self._path
            ) from exc
        log.debug("Wrote %s bytes to %s", len(data), self._path)

    def close(self) -> None:
        """Release the lock and the handle; safe to call more than once."""

        handle = self._handle
        if handle is None:
            return
        self._handle = None
        try:
            _unlock(handle)
        except OSError:
            log.debug("Unlocking %s failed; closing the handle releases the lock", self._path)
        finally:
            handle.close()

    def __enter__(self) -> JsonModelStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False  # don't swallow exceptions

    def _require_handle(self) -> IO[bytes]:
        if self._handle is None:
            raise PersistenceError(f"model file {self._path} is already closed", path=self._path)
        return self._handle

    @classmethod
    def _load(cls, path: Path) -> JsonModelStore:
        handle = _open_locked(path, create=False)
        try:
            data = handle.read()
            document = load_model_file(data)
        except (OSError, ValidationError, InvalidIdentityError) as exc:
            handle.close()
            raise PersistenceError(f"can't read file {path}: {exc}", path=path) from exc
        log.debug("Loaded model %s with %s entities", path, len(document.entities))
        return cls(path, handle, document)

    @classmethod
    def _create(cls, path: Path) -> JsonModelStore:
        handle = _open_locked(path, create=True)
        store = cls(path, handle, ModelDocument())
        # write right away so the file is known to be writable and valid for the next run
        try:
            store.write()
        except PersistenceError:
            store.close()
            raise
        log.info("Created new model file %s", path)
        return store


def _open_locked(path: Path, *, create: bool) -> IO[bytes]:
    flags = os.O_RDWR | (os.O_CREAT if create else 0)
    try:
        descriptor = os.open(path, flags, 0o600)
    except OSError as exc:
        raise PersistenceError(f"can't open file {path}: {exc}", path=path) from exc
    handle = os.fdopen(descriptor, "r+b")
    try:
        _lock(handle)
    except OSError as exc:
        handle.close()
        raise ModelLockedError(
            f"model file {path} is in use by another process", path=path
        ) from exc
    handle.seek(0)
    return handle
