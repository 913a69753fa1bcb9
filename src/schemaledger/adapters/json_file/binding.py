"""Read binding descriptors from a JSON binding file and write the annotated result."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from schemaledger.domain.binding import (
    Binding,
    BindingEntity,
    BindingIndex,
    BindingProperty,
    BindingRelation,
    BindingRelationTarget,
)
from schemaledger.domain.errors import PersistenceError
from schemaledger.domain.model import IdUid

from .schema import (
    BindingEntityPayload,
    BindingFilePayload,
    BindingPropertyPayload,
    BindingRelationPayload,
)

if TYPE_CHECKING:
    from pathlib import Path


def read_binding_file(path: Path) -> Binding:
    try:
        payload = BindingFilePayload.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        raise PersistenceError(f"can't read binding file {path}: {exc}", path=path) from exc
    return binding_from_payload(payload)


def write_binding_file(path: Path, binding: Binding) -> None:
    try:
        path.write_bytes(dump_binding(binding))
    except OSError as exc:
        raise PersistenceError(f"can't write binding file {path}: {exc}", path=path) from exc


def dump_binding(binding: Binding) -> bytes:
    payload = payload_from_binding(binding)
    return (payload.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n").encode()


def binding_from_payload(payload: BindingFilePayload) -> Binding:
    return Binding(entities=[_entity_from_payload(entity) for entity in payload.entities])


def payload_from_binding(binding: Binding) -> BindingFilePayload:
    """Render the binding including the identities resolved by reconciliation."""

    return BindingFilePayload(entities=[_entity_payload(entity) for entity in binding.entities])


def _entity_from_payload(payload: BindingEntityPayload) -> BindingEntity:
    return BindingEntity(
        name=payload.name,
        uid=payload.uid,
        uid_request=payload.uid_request,
        properties=[_property_from_payload(item) for item in payload.properties],
        relations=[_relation_from_payload(item) for item in payload.relations],
    )


def _property_from_payload(payload: BindingPropertyPayload) -> BindingProperty:
    return BindingProperty(
        name=payload.name,
        type=payload.type,
        flags=payload.flags,
        uid=payload.uid,
        uid_request=payload.uid_request,
        index=BindingIndex() if payload.index else None,
        relation_target=payload.relation_target,
    )


def _relation_from_payload(payload: BindingRelationPayload) -> BindingRelation:
    return BindingRelation(
        name=payload.name,
        target=BindingRelationTarget(name=payload.target),
        uid=payload.uid,
        uid_request=payload.uid_request,
    )


def _entity_payload(entity: BindingEntity) -> BindingEntityPayload:
    return BindingEntityPayload(
        name=entity.name,
        uid=entity.uid,
        uid_request=entity.uid_request,
        properties=[_property_payload(item) for item in entity.properties],
        relations=[_relation_payload(item) for item in entity.relations],
        id=_pair(entity.id, entity.uid),
        last_property_id=str(entity.last_property_id) or None,
    )


def _property_payload(binding_property: BindingProperty) -> BindingPropertyPayload:
    index = binding_property.index
    return BindingPropertyPayload(
        name=binding_property.name,
        type=binding_property.type,
        flags=binding_property.combined_flags(),
        uid=binding_property.uid,
        uid_request=binding_property.uid_request,
        index=binding_property.wants_index,
        relation_target=binding_property.relation_target,
        id=_pair(binding_property.id, binding_property.uid),
        index_id=_pair(index.id, index.uid) if index is not None else None,
    )


def _relation_payload(relation: BindingRelation) -> BindingRelationPayload:
    return BindingRelationPayload(
        name=relation.name,
        target=relation.target.name,
        uid=relation.uid,
        uid_request=relation.uid_request,
        id=_pair(relation.id, relation.uid),
        target_id=_pair(relation.target.id, relation.target.uid),
    )


def _pair(local_id: int, uid: int) -> str | None:
    return str(IdUid(local_id, uid)) or None
