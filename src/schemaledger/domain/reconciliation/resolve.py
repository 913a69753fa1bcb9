"""Identity resolution: find or create the model counterpart of a binding descriptor.

Every element kind resolves with the same precedence:
1) an explicit uid must exist in the model, otherwise the run fails
2) otherwise look the element up by name
3) a uid request never proceeds; it reports the existing uid (or its absence)
4) with no match and no request, a new element with a fresh identity is created

Properties add one case to step 1: an explicit uid that is unknown while the
name still matches resets the property (same local id, new uid, old uid retired).
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Generic, TypeVar

from schemaledger.domain.errors import (
    BindingConflictError,
    IdentityNotFoundError,
    InvalidIdentityError,
    UidRequestError,
)
from schemaledger.domain.model import ElementKind

from .contracts import ChangeAction, ModelChange, UidFound, UidNotFound

if TYPE_CHECKING:
    from collections.abc import Iterable

    from schemaledger.domain.binding import BindingEntity, BindingProperty, BindingRelation
    from schemaledger.domain.model import (
        ModelDocument,
        ModelEntity,
        ModelProperty,
        StandaloneRelation,
    )

    from .contracts import MergeReport

log = getLogger(__name__)


TElement = TypeVar("TElement")


class ClaimRegistry(Generic[TElement]):
    """Tracks which binding descriptor resolved to which model element."""

    def __init__(self, kind: ElementKind, *, scope: str | None = None) -> None:
        self._kind = kind
        self._scope = scope
        self._owners: dict[int, tuple[TElement, str]] = {}

    def claim(self, element: TElement, descriptor_name: str) -> None:
        key = id(element)
        if key in self._owners:
            _element, owner = self._owners[key]
            where = f" in entity {self._scope}" if self._scope else ""
            raise BindingConflictError(
                f"binding {self._kind} descriptors {owner} and {descriptor_name}{where} "
                f"resolve to the same model {self._kind}"
            )
        self._owners[key] = (element, descriptor_name)

    def is_claimed(self, element: TElement) -> bool:
        return id(element) in self._owners

    def unclaimed(self, elements: Iterable[TElement]) -> list[TElement]:
        return [element for element in elements if not self.is_claimed(element)]


def resolve_entity(
    binding_entity: BindingEntity,
    document: ModelDocument,
    *,
    report: MergeReport,
) -> ModelEntity:
    if binding_entity.uid:
        entity = document.find_entity_by_uid(binding_entity.uid)
        if entity is None:
            raise IdentityNotFoundError(
                ElementKind.ENTITY, uid=binding_entity.uid, name=binding_entity.name
            )
        return entity

    entity = document.find_entity_by_name(binding_entity.name)

    if binding_entity.uid_request:
        outcome = UidFound(existing_uid=entity.id.uid) if entity is not None else UidNotFound()
        raise UidRequestError(ElementKind.ENTITY, name=binding_entity.name, outcome=outcome)

    if entity is None:
        entity = document.create_entity(binding_entity.name)
        report.record(
            ModelChange(
                kind=ElementKind.ENTITY,
                action=ChangeAction.CREATED,
                path=entity.name,
                identity=entity.id,
            )
        )
    return entity


def resolve_property(
    binding_property: BindingProperty,
    model_entity: ModelEntity,
    *,
    report: MergeReport,
) -> ModelProperty:
    if binding_property.uid:
        model_property = model_entity.find_property_by_uid(binding_property.uid)
        if model_property is not None:
            return model_property

        model_property = model_entity.find_property_by_name(binding_property.name)
        if model_property is None:
            raise IdentityNotFoundError(
                ElementKind.PROPERTY,
                uid=binding_property.uid,
                name=binding_property.name,
                entity=model_entity.name,
            )
        _reset_property_uid(model_property, binding_property.uid, report=report)
        return model_property

    model_property = model_entity.find_property_by_name(binding_property.name)

    if binding_property.uid_request:
        outcome: UidFound | UidNotFound
        if model_property is not None:
            outcome = UidFound(
                existing_uid=model_property.id.uid,
                suggested_uid=model_entity.model.uid_pool.generate(),
            )
        else:
            outcome = UidNotFound()
        raise UidRequestError(
            ElementKind.PROPERTY,
            name=binding_property.name,
            outcome=outcome,
            entity=model_entity.name,
        )

    if model_property is None:
        model_property = model_entity.create_property(binding_property.name)
        report.record(
            ModelChange(
                kind=ElementKind.PROPERTY,
                action=ChangeAction.CREATED,
                path=f"{model_entity.name}.{model_property.name}",
                identity=model_property.id,
            )
        )
    return model_property


def resolve_relation(
    binding_relation: BindingRelation,
    model_entity: ModelEntity,
    *,
    report: MergeReport,
) -> StandaloneRelation:
    if binding_relation.uid:
        relation = model_entity.find_relation_by_uid(binding_relation.uid)
        if relation is None:
            raise IdentityNotFoundError(
                ElementKind.RELATION,
                uid=binding_relation.uid,
                name=binding_relation.name,
                entity=model_entity.name,
            )
        return relation

    relation = model_entity.find_relation_by_name(binding_relation.name)

    if binding_relation.uid_request:
        outcome = UidFound(existing_uid=relation.id.uid) if relation is not None else UidNotFound()
        raise UidRequestError(
            ElementKind.RELATION,
            name=binding_relation.name,
            outcome=outcome,
            entity=model_entity.name,
        )

    if relation is None:
        relation = model_entity.create_relation(binding_relation.name)
        report.record(
            ModelChange(
                kind=ElementKind.RELATION,
                action=ChangeAction.CREATED,
                path=f"{model_entity.name}.{relation.name}",
                identity=relation.id,
            )
        )
    return relation


def _reset_property_uid(model_property: ModelProperty, uid: int, *, report: MergeReport) -> None:
    entity = model_property.entity
    document = entity.model
    path = f"{entity.name}.{model_property.name}"
    if document.uid_pool.contains(uid):
        raise InvalidIdentityError(
            f"uid {uid} given for property {path} is already used in the model"
        )

    log.warning(
        "New UID was specified for the same property name '%s' - resetting value "
        "(recreating the property)",
        path,
    )
    previous = model_property.id
    document.retire(ElementKind.PROPERTY, previous.uid)
    model_property.id = previous.with_uid(uid)
    if entity.last_property_id == previous:
        entity.last_property_id = model_property.id
    report.record(
        ModelChange(
            kind=ElementKind.PROPERTY,
            action=ChangeAction.RESET,
            path=path,
            identity=model_property.id,
            previous=str(previous),
        )
    )
