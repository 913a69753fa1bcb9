from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from schemaledger.adapters.json_file import JsonModelStore, dump_model_file
from schemaledger.app import check_document, load_model_summary, reconcile_model_file
from schemaledger.domain.errors import IdentityNotFoundError, ModelValidationError
from schemaledger.domain.model import LEGACY_MODEL_VERSION, MODEL_VERSION, ModelDocument
from schemaledger.domain.ports import ModelStore
from schemaledger.domain.reconciliation import ChangeAction
from tests.helpers.models import binding, entity, id_prop, make_task_document, prop, task_binding

if TYPE_CHECKING:
    from pathlib import Path


def test_new_model_file_is_created_and_filled(model_path: Path) -> None:
    report = reconcile_model_file(task_binding(), model_path)

    data = json.loads(model_path.read_bytes())
    (task,) = data["entities"]
    assert task["name"] == "Task"
    assert [p["name"] for p in task["properties"]] == ["Id", "Name"]
    assert task["lastPropertyId"] == task["properties"][1]["id"]
    assert data["lastEntityId"] == task["id"]
    assert [c.path for c in report.of(ChangeAction.CREATED)] == ["Task", "Task.Id", "Task.Name"]


def test_second_run_is_a_no_op(model_path: Path) -> None:
    reconcile_model_file(task_binding(prop("Done", indexed=True)), model_path)
    first = model_path.read_bytes()

    report = reconcile_model_file(task_binding(prop("Done", indexed=True)), model_path)

    assert not report.has_changes
    assert model_path.read_bytes() == first


def test_failed_merge_leaves_file_untouched_and_unlocked(model_path: Path) -> None:
    model_path.write_bytes(dump_model_file(make_task_document()))
    before = model_path.read_bytes()

    with pytest.raises(IdentityNotFoundError):
        reconcile_model_file(task_binding(prop("Due", uid=999)), model_path)

    assert model_path.read_bytes() == before
    with JsonModelStore.load_or_create(model_path) as store:
        assert len(store.document.entities) == 1


def test_prune_entities_removes_unmatched(model_path: Path) -> None:
    model_path.write_bytes(dump_model_file(make_task_document()))

    kept = reconcile_model_file(binding(entity("Tag", id_prop())), model_path)
    assert kept.unmatched_entities == ("Task",)

    pruned = reconcile_model_file(
        binding(entity("Tag", id_prop())), model_path, prune_entities=True
    )

    data = json.loads(model_path.read_bytes())
    assert [e["name"] for e in data["entities"]] == ["Tag"]
    assert data["retiredEntityUids"] == [10]
    assert [c.path for c in pruned.of(ChangeAction.REMOVED)] == ["Task"]


def test_legacy_file_is_upgraded_on_write(model_path: Path) -> None:
    legacy = json.loads(dump_model_file(make_task_document()))
    for key in ("_note1", "_note2", "_note3", "modelVersion", "modelVersionParserMinimum"):
        del legacy[key]
    model_path.write_text(json.dumps(legacy))

    with JsonModelStore.load_or_create(model_path) as store:
        assert store.document.model_version == LEGACY_MODEL_VERSION

    reconcile_model_file(task_binding(), model_path)

    data = json.loads(model_path.read_bytes())
    assert data["modelVersion"] == MODEL_VERSION
    assert "_note1" in data


def test_newer_model_file_is_refused(model_path: Path) -> None:
    document = make_task_document()
    document.minimum_parser_version = MODEL_VERSION + 1
    model_path.write_bytes(dump_model_file(document))
    before = model_path.read_bytes()

    with pytest.raises(ModelValidationError):
        reconcile_model_file(task_binding(), model_path)

    assert model_path.read_bytes() == before


def test_check_document_rejects_corrupt_counters(tmp_path: Path) -> None:
    document = make_task_document()
    document.entities[0].last_property_id = document.entities[0].properties[0].id

    with pytest.raises(ModelValidationError):
        check_document(document, path=tmp_path / "model.json")


def test_model_summary(model_path: Path) -> None:
    model_path.write_bytes(dump_model_file(make_task_document()))

    summary = load_model_summary(model_path)

    assert summary["entities"] == {"Task": {"id": "1:10", "properties": 2, "relations": 0}}
    assert summary["last_entity_id"] == "1:10"
    assert summary["retired_uids"] == 0


class InMemoryModelStore:
    def __init__(self, document: ModelDocument) -> None:
        self._document = document
        self.writes = 0
        self.closed = False

    @property
    def document(self) -> ModelDocument:
        return self._document

    def write(self) -> None:
        self.writes += 1

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> InMemoryModelStore:
        return self

    def __exit__(self, *_exc: object) -> bool:
        self.close()
        return False


def test_store_factory_is_used_and_closed(tmp_path: Path) -> None:
    store = InMemoryModelStore(make_task_document())

    report = reconcile_model_file(
        task_binding(prop("Email")), tmp_path / "unused.json", store_factory=lambda _path: store
    )

    assert isinstance(store, ModelStore)
    assert store.writes == 1
    assert store.closed
    assert [c.path for c in report.of(ChangeAction.CREATED)] == ["Task.Email"]
    assert not (tmp_path / "unused.json").exists()


def test_store_is_closed_without_writing_on_failure(tmp_path: Path) -> None:
    store = InMemoryModelStore(make_task_document())

    with pytest.raises(IdentityNotFoundError):
        reconcile_model_file(
            task_binding(prop("Due", uid=999)),
            tmp_path / "unused.json",
            store_factory=lambda _path: store,
        )

    assert store.writes == 0
    assert store.closed
