"""Translate model-file payloads into domain documents and back."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from schemaledger.domain.model import (
    DEFAULT_NOTES,
    FILE_FORMAT_VERSION,
    LEGACY_MODEL_VERSION,
    MINIMUM_PARSER_VERSION,
    MODEL_VERSION,
    IdUid,
    ModelDocument,
    ModelEntity,
    ModelProperty,
    StandaloneRelation,
)

from .schema import EntityPayload, ModelFilePayload, PropertyPayload, RelationPayload

if TYPE_CHECKING:
    from collections.abc import Sequence

log = getLogger(__name__)


def document_from_payload(payload: ModelFilePayload) -> ModelDocument:
    """Build a ``ModelDocument``, applying the legacy version rule and defaults.

    Files written before versioning existed carry neither version field nor
    notes; those are format version 4. Any other missing field gets its default.
    """

    if payload.predates_versioning:
        log.warning(
            "Model file has no version information; treating it as model version %s",
            LEGACY_MODEL_VERSION,
        )
        model_version = parser_minimum = LEGACY_MODEL_VERSION
    else:
        model_version = payload.model_version or MODEL_VERSION
        parser_minimum = payload.model_version_parser_minimum or MINIMUM_PARSER_VERSION

    return ModelDocument(
        entities=[_entity_from_payload(entity) for entity in payload.entities],
        last_entity_id=IdUid.parse(payload.last_entity_id),
        last_index_id=IdUid.parse(payload.last_index_id),
        last_relation_id=IdUid.parse(payload.last_relation_id),
        last_sequence_id=IdUid.parse(payload.last_sequence_id),
        retired_entity_uids=list(payload.retired_entity_uids or ()),
        retired_index_uids=list(payload.retired_index_uids or ()),
        retired_property_uids=list(payload.retired_property_uids or ()),
        retired_relation_uids=list(payload.retired_relation_uids or ()),
        model_version=model_version,
        minimum_parser_version=parser_minimum,
        version=payload.version or FILE_FORMAT_VERSION,
        notes=(
            payload.note1 or DEFAULT_NOTES[0],
            payload.note2 or DEFAULT_NOTES[1],
            payload.note3 or DEFAULT_NOTES[2],
        ),
    )


def payload_from_document(document: ModelDocument) -> ModelFilePayload:
    note1, note2, note3 = document.notes
    return ModelFilePayload(
        note1=note1,
        note2=note2,
        note3=note3,
        entities=[_entity_payload(entity) for entity in document.entities],
        last_entity_id=str(document.last_entity_id),
        last_index_id=str(document.last_index_id),
        last_relation_id=str(document.last_relation_id),
        last_sequence_id=str(document.last_sequence_id),
        model_version=document.model_version,
        model_version_parser_minimum=document.minimum_parser_version,
        retired_entity_uids=list(document.retired_entity_uids),
        retired_index_uids=list(document.retired_index_uids),
        retired_property_uids=list(document.retired_property_uids),
        retired_relation_uids=list(document.retired_relation_uids),
        version=document.version,
    )


def dump_model_file(document: ModelDocument) -> bytes:
    payload = payload_from_document(document)
    text = payload.model_dump_json(by_alias=True, exclude_none=True, indent=2)
    return (text + "\n").encode("utf-8")


def load_model_file(data: bytes | str) -> ModelDocument:
    return document_from_payload(ModelFilePayload.model_validate_json(data))


def _entity_from_payload(payload: EntityPayload) -> ModelEntity:
    return ModelEntity(
        id=IdUid.parse(payload.id),
        name=payload.name,
        last_property_id=IdUid.parse(payload.last_property_id),
        properties=[_property_from_payload(item) for item in payload.properties],
        relations=[_relation_from_payload(item) for item in payload.relations or ()],
    )


def _property_from_payload(payload: PropertyPayload) -> ModelProperty:
    return ModelProperty(
        id=IdUid.parse(payload.id),
        name=payload.name,
        type=payload.type,
        flags=payload.flags or 0,
        index_id=IdUid.parse(payload.index_id) if payload.index_id else None,
        relation_target=payload.relation_target,
    )


def _relation_from_payload(payload: RelationPayload) -> StandaloneRelation:
    return StandaloneRelation(
        id=IdUid.parse(payload.id),
        name=payload.name,
        target_id=IdUid.parse(payload.target_id),
    )


def _entity_payload(entity: ModelEntity) -> EntityPayload:
    return EntityPayload(
        id=str(entity.id),
        last_property_id=str(entity.last_property_id),
        name=entity.name,
        properties=[_property_payload(item) for item in entity.properties],
        relations=_relation_payloads(entity.relations),
    )


def _property_payload(model_property: ModelProperty) -> PropertyPayload:
    return PropertyPayload(
        id=str(model_property.id),
        name=model_property.name,
        index_id=str(model_property.index_id) if model_property.index_id is not None else None,
        type=model_property.type,
        flags=model_property.flags or None,
        relation_target=model_property.relation_target,
    )


def _relation_payloads(relations: Sequence[StandaloneRelation]) -> list[RelationPayload] | None:
    if not relations:
        return None
    return [
        RelationPayload(id=str(relation.id), name=relation.name, target_id=str(relation.target_id))
        for relation in relations
    ]
