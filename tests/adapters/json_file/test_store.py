from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

import pytest

from schemaledger.adapters.json_file import JsonModelStore, dump_model_file
from schemaledger.domain.errors import ModelLockedError, PersistenceError
from schemaledger.domain.model import IdUid
from tests.helpers.models import make_task_document

if TYPE_CHECKING:
    from pathlib import Path

posix_only = pytest.mark.skipif(
    os.name == "nt", reason="byte-range locks are per process on Windows"
)


def test_missing_file_is_created_immediately(model_path: Path) -> None:
    with JsonModelStore.load_or_create(model_path) as store:
        assert model_path.exists()
        assert store.document.entities == []

    data = json.loads(model_path.read_bytes())
    assert data["entities"] == []
    assert data["lastEntityId"] == ""


def test_load_does_not_change_the_file(model_path: Path) -> None:
    original = dump_model_file(make_task_document())
    model_path.write_bytes(original)

    with JsonModelStore.load_or_create(model_path) as store:
        assert store.document.entities[0].name == "Task"
        assert model_path.read_bytes() == original

    assert model_path.read_bytes() == original


def test_write_replaces_the_whole_file(model_path: Path) -> None:
    model_path.write_bytes(dump_model_file(make_task_document()))

    with JsonModelStore.load_or_create(model_path) as store:
        task = store.document.entities[0]
        store.document.remove_entity(task)
        store.write()

    data = json.loads(model_path.read_bytes())
    assert data["entities"] == []
    assert data["retiredEntityUids"] == [10]


@posix_only
def test_second_store_on_the_same_file_is_refused(model_path: Path) -> None:
    with JsonModelStore.load_or_create(model_path):
        with pytest.raises(ModelLockedError) as excinfo:
            JsonModelStore.load_or_create(model_path)

    assert excinfo.value.path == model_path
    assert "in use" in str(excinfo.value)


def test_lock_is_released_on_close(model_path: Path) -> None:
    store = JsonModelStore.load_or_create(model_path)
    store.close()
    store.close()

    assert store.closed
    with JsonModelStore.load_or_create(model_path) as reopened:
        assert not reopened.closed


def test_lock_is_released_when_the_block_raises(model_path: Path) -> None:
    with pytest.raises(RuntimeError), JsonModelStore.load_or_create(model_path):
        raise RuntimeError("boom")

    with JsonModelStore.load_or_create(model_path) as store:
        assert store.document.last_entity_id == IdUid()


def test_write_after_close_is_refused(model_path: Path) -> None:
    store = JsonModelStore.load_or_create(model_path)
    store.close()

    with pytest.raises(PersistenceError):
        store.write()


def test_unreadable_file_reports_path_and_releases_lock(model_path: Path) -> None:
    model_path.write_bytes(b"")

    with pytest.raises(PersistenceError) as excinfo:
        JsonModelStore.load_or_create(model_path)

    assert "can't read file" in str(excinfo.value)
    assert excinfo.value.path == model_path
    model_path.write_bytes(dump_model_file(make_task_document()))
    with JsonModelStore.load_or_create(model_path) as store:
        assert len(store.document.entities) == 1


def test_invalid_identity_in_file_is_a_read_error(model_path: Path) -> None:
    model_path.write_text('{"lastEntityId": "0:5"}')

    with pytest.raises(PersistenceError):
        JsonModelStore.load_or_create(model_path)
