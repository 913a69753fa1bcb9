"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from schemaledger.adapters.json_file import JsonModelStore
from schemaledger.domain.errors import ModelValidationError
from schemaledger.domain.model import MODEL_VERSION
from schemaledger.domain.reconciliation import (
    MergeReport,
    merge_binding_with_model,
    prune_unmatched_entities,
)

if TYPE_CHECKING:
    from schemaledger.domain.binding import Binding
    from schemaledger.domain.model import ModelDocument
    from schemaledger.domain.ports import ModelStoreFactory

# the newest model format this tool understands
PARSER_VERSION = MODEL_VERSION

log = getLogger(__name__)


def reconcile_model_file(
    binding: Binding,
    model_path: Path | str,
    *,
    prune_entities: bool = False,
    store_factory: ModelStoreFactory | None = None,
) -> MergeReport:
    """Merge ``binding`` into the model file at ``model_path`` and persist the result.

    The file stays locked from load to close. It is only rewritten once the merge
    has succeeded in memory; on any error the file keeps its previous content.
    """

    path = Path(model_path)
    open_store = store_factory or JsonModelStore.load_or_create
    log.info("Reconciling %s entities with model %s", len(binding.entities), path)

    with open_store(path) as store:
        document = store.document
        check_document(document, path=path)
        report = merge_binding_with_model(binding, document)
        if prune_entities and report.unmatched_entities:
            prune_unmatched_entities(document, report)
        document.upgrade_version()
        document.validate()
        store.write()

    log.info(
        "Finished reconciling %s: %s",
        path,
        ", ".join(f"{action}={count}" for action, count in report.summary().items()),
    )
    return report


def load_model_summary(
    model_path: Path | str,
    *,
    store_factory: ModelStoreFactory | None = None,
) -> dict[str, object]:
    """Describe a model file without changing it (it is still locked while read)."""

    path = Path(model_path)
    open_store = store_factory or JsonModelStore.load_or_create
    with open_store(path) as store:
        document = store.document
        check_document(document, path=path)
        return {
            "path": str(path),
            "model_version": document.model_version,
            "entities": {
                entity.name: {
                    "id": str(entity.id),
                    "properties": len(entity.properties),
                    "relations": len(entity.relations),
                }
                for entity in document.entities
            },
            "last_entity_id": str(document.last_entity_id),
            "last_index_id": str(document.last_index_id),
            "last_relation_id": str(document.last_relation_id),
            "retired_uids": sum(
                len(uids)
                for uids in (
                    document.retired_entity_uids,
                    document.retired_index_uids,
                    document.retired_property_uids,
                    document.retired_relation_uids,
                )
            ),
        }


def check_document(document: ModelDocument, *, path: Path) -> None:
    """Refuse documents written by a newer tool or violating identity invariants."""

    if not document.is_supported_by(PARSER_VERSION):
        raise ModelValidationError(
            f"model file {path} requires model version {document.minimum_parser_version} "
            f"but this tool supports up to {PARSER_VERSION}"
        )
    document.validate()
