"""Merge steps applied once a binding descriptor has its model counterpart.

The binding is authoritative for names, types, flags, index presence and
relation targets; the model is authoritative for identity. Resolved identities
are copied back onto the binding descriptors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from schemaledger.domain.binding import BindingIndex
from schemaledger.domain.errors import RelationTargetMissingError
from schemaledger.domain.model import ElementKind

from .contracts import ChangeAction, ModelChange
from .resolve import ClaimRegistry, resolve_property, resolve_relation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from schemaledger.domain.binding import BindingEntity, BindingProperty, BindingRelation
    from schemaledger.domain.model import (
        IdUid,
        ModelEntity,
        ModelProperty,
        StandaloneRelation,
    )

    from .contracts import MergeReport


def merge_entity(
    binding_entity: BindingEntity,
    model_entity: ModelEntity,
    *,
    report: MergeReport,
    targets: Mapping[str, ModelEntity] | None = None,
) -> None:
    if model_entity.name != binding_entity.name:
        _record_rename(
            report,
            ElementKind.ENTITY,
            model_entity.name,
            binding_entity.name,
            model_entity.id,
        )
        model_entity.name = binding_entity.name

    binding_entity.id, binding_entity.uid = model_entity.id.id, model_entity.id.uid

    merge_properties(binding_entity, model_entity, report=report)
    merge_relations(binding_entity, model_entity, report=report, targets=targets)


def merge_properties(
    binding_entity: BindingEntity,
    model_entity: ModelEntity,
    *,
    report: MergeReport,
) -> None:
    claims: ClaimRegistry[ModelProperty] = ClaimRegistry(
        ElementKind.PROPERTY, scope=model_entity.name
    )
    for binding_property in binding_entity.properties:
        model_property = resolve_property(binding_property, model_entity, report=report)
        claims.claim(model_property, binding_property.name)
        merge_property(binding_property, model_property, report=report)

    # properties the binding no longer declares
    for model_property in claims.unclaimed(model_entity.properties):
        model_entity.remove_property(model_property)
        report.record(
            ModelChange(
                kind=ElementKind.PROPERTY,
                action=ChangeAction.REMOVED,
                path=f"{model_entity.name}.{model_property.name}",
                identity=model_property.id,
            )
        )

    binding_entity.last_property_id = model_entity.last_property_id


def merge_property(
    binding_property: BindingProperty,
    model_property: ModelProperty,
    *,
    report: MergeReport,
) -> None:
    entity_name = model_property.entity.name
    if model_property.name != binding_property.name:
        _record_rename(
            report,
            ElementKind.PROPERTY,
            f"{entity_name}.{model_property.name}",
            f"{entity_name}.{binding_property.name}",
            model_property.id,
        )
        model_property.name = binding_property.name

    binding_property.id, binding_property.uid = model_property.id.id, model_property.id.uid

    path = f"{entity_name}.{model_property.name}"
    if binding_property.wants_index:
        index_id = model_property.index_id
        if index_id is None:
            index_id = model_property.create_index()
            report.record(
                ModelChange(
                    kind=ElementKind.INDEX,
                    action=ChangeAction.CREATED,
                    path=path,
                    identity=index_id,
                )
            )
        if binding_property.index is None:
            binding_property.index = BindingIndex()
        binding_property.index.id, binding_property.index.uid = index_id.id, index_id.uid
    elif model_property.index_id is not None:
        removed = model_property.index_id
        model_property.remove_index()
        report.record(
            ModelChange(
                kind=ElementKind.INDEX,
                action=ChangeAction.REMOVED,
                path=path,
                identity=removed,
            )
        )

    model_property.relation_target = binding_property.relation_target or None
    model_property.type = binding_property.type
    model_property.flags = binding_property.combined_flags()


def merge_relations(
    binding_entity: BindingEntity,
    model_entity: ModelEntity,
    *,
    report: MergeReport,
    targets: Mapping[str, ModelEntity] | None = None,
) -> None:
    claims: ClaimRegistry[StandaloneRelation] = ClaimRegistry(
        ElementKind.RELATION, scope=model_entity.name
    )
    for binding_relation in binding_entity.relations:
        relation = resolve_relation(binding_relation, model_entity, report=report)
        claims.claim(relation, binding_relation.name)
        merge_relation(binding_relation, relation, model_entity, report=report, targets=targets)

    for relation in claims.unclaimed(model_entity.relations):
        model_entity.remove_relation(relation)
        report.record(
            ModelChange(
                kind=ElementKind.RELATION,
                action=ChangeAction.REMOVED,
                path=f"{model_entity.name}.{relation.name}",
                identity=relation.id,
            )
        )


def merge_relation(
    binding_relation: BindingRelation,
    relation: StandaloneRelation,
    model_entity: ModelEntity,
    *,
    report: MergeReport,
    targets: Mapping[str, ModelEntity] | None = None,
) -> None:
    """Merge one relation and point it at its target entity.

    ``targets`` maps casefolded binding entity names to the model entities they
    resolved to; an entity renamed later in the run still has its old name here.
    """

    if relation.name != binding_relation.name:
        _record_rename(
            report,
            ElementKind.RELATION,
            f"{model_entity.name}.{relation.name}",
            f"{model_entity.name}.{binding_relation.name}",
            relation.id,
        )
        relation.name = binding_relation.name

    binding_relation.id, binding_relation.uid = relation.id.id, relation.id.uid

    target = (targets or {}).get(binding_relation.target.name.casefold())
    if target is None:
        target = model_entity.model.find_entity_by_name(binding_relation.target.name)
    if target is None:
        raise RelationTargetMissingError(
            relation=binding_relation.name,
            entity=model_entity.name,
            target=binding_relation.target.name,
        )
    binding_relation.target.id, binding_relation.target.uid = target.id.id, target.id.uid
    relation.set_target(target)


def _record_rename(
    report: MergeReport,
    kind: ElementKind,
    previous: str,
    current: str,
    identity: IdUid,
) -> None:
    report.record(
        ModelChange(
            kind=kind,
            action=ChangeAction.RENAMED,
            path=current,
            identity=identity,
            previous=previous,
        )
    )
