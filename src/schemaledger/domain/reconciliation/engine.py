"""Orchestrator for the reconciliation pass.

Entities are resolved for the whole binding before any merge step starts, so
relation targets are looked up by their binding name regardless of declaration
order or of renames still pending for the target.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from schemaledger.domain.model import ElementKind

from .contracts import ChangeAction, MergeReport, ModelChange
from .merge import merge_entity
from .resolve import ClaimRegistry, resolve_entity

if TYPE_CHECKING:
    from schemaledger.domain.binding import Binding, BindingEntity
    from schemaledger.domain.model import ModelDocument, ModelEntity, UidPool

log = getLogger(__name__)


def merge_binding_with_model(
    binding: Binding,
    document: ModelDocument,
    *,
    pool: UidPool | None = None,
) -> MergeReport:
    """Merge ``binding`` into ``document`` in place and annotate the binding with ids.

    Any failure propagates and leaves the caller responsible for not persisting
    the (partially mutated) document.
    """

    if pool is not None:
        document.use_uid_pool(pool)

    report = MergeReport()
    claims: ClaimRegistry[ModelEntity] = ClaimRegistry(ElementKind.ENTITY)
    resolved: list[tuple[BindingEntity, ModelEntity]] = []
    for binding_entity in binding.entities:
        model_entity = resolve_entity(binding_entity, document, report=report)
        claims.claim(model_entity, binding_entity.name)
        resolved.append((binding_entity, model_entity))

    targets = {
        binding_entity.name.casefold(): model_entity for binding_entity, model_entity in resolved
    }
    for binding_entity, model_entity in resolved:
        merge_entity(binding_entity, model_entity, report=report, targets=targets)

    report.unmatched_entities = tuple(entity.name for entity in claims.unclaimed(document.entities))
    if report.unmatched_entities:
        log.info(
            "Model entities not present in the binding (kept): %s",
            ", ".join(report.unmatched_entities),
        )
    log.debug("Merge changes: %s", report.summary())
    return report


def prune_unmatched_entities(document: ModelDocument, report: MergeReport) -> tuple[str, ...]:
    """Remove the entities a merge left unmatched, retiring all their uids.

    This is caller policy, not part of the merge. Fails if a surviving entity
    still has a relation targeting one of them.
    """

    doomed = [
        entity
        for name in report.unmatched_entities
        if (entity := document.find_entity_by_name(name)) is not None
    ]
    # relations between doomed entities go first so removal order does not matter
    for entity in doomed:
        for relation in list(entity.relations):
            entity.remove_relation(relation)
            report.record(
                ModelChange(
                    kind=ElementKind.RELATION,
                    action=ChangeAction.REMOVED,
                    path=f"{entity.name}.{relation.name}",
                    identity=relation.id,
                )
            )
    for entity in doomed:
        document.remove_entity(entity)
        report.record(
            ModelChange(
                kind=ElementKind.ENTITY,
                action=ChangeAction.REMOVED,
                path=entity.name,
                identity=entity.id,
            )
        )
        log.info("Removed entity %s (%s)", entity.name, entity.id)
    report.unmatched_entities = ()
    return tuple(entity.name for entity in doomed)
