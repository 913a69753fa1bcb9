"""Builders for model documents and binding descriptors used across tests."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from schemaledger.domain.binding import (
    Binding,
    BindingEntity,
    BindingIndex,
    BindingProperty,
    BindingRelation,
    BindingRelationTarget,
)
from schemaledger.domain.model import (
    IdUid,
    ModelDocument,
    ModelEntity,
    ModelProperty,
    PropertyFlags,
    PropertyType,
    UidPool,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


class ScriptedRandom(random.Random):
    """Random source replaying fixed values before falling back to a seeded stream."""

    def __init__(self, values: Iterable[int] = (), *, seed: int = 1234) -> None:
        super().__init__(seed)
        self._values = list(values)

    def getrandbits(self, k: int, /) -> int:
        if self._values:
            return self._values.pop(0)
        return super().getrandbits(k)


def scripted_pool(document: ModelDocument, *values: int) -> UidPool:
    pool = UidPool(document, rng=ScriptedRandom(values))
    document.use_uid_pool(pool)
    return pool


def make_task_document() -> ModelDocument:
    """Entity "Task" with properties Id (1:100) and Name (2:101)."""

    task = ModelEntity(
        id=IdUid(1, 10),
        name="Task",
        last_property_id=IdUid(2, 101),
        properties=[
            ModelProperty(
                id=IdUid(1, 100),
                name="Id",
                type=PropertyType.LONG,
                flags=PropertyFlags.ID,
            ),
            ModelProperty(id=IdUid(2, 101), name="Name", type=PropertyType.STRING),
        ],
    )
    return ModelDocument(entities=[task], last_entity_id=IdUid(1, 10))


def prop(
    name: str,
    *,
    type: int = PropertyType.STRING,  # noqa: A002
    flags: int = 0,
    uid: int = 0,
    uid_request: bool = False,
    indexed: bool = False,
    relation_target: str | None = None,
) -> BindingProperty:
    return BindingProperty(
        name=name,
        type=type,
        flags=flags,
        uid=uid,
        uid_request=uid_request,
        index=BindingIndex() if indexed else None,
        relation_target=relation_target,
    )


def id_prop() -> BindingProperty:
    return prop("Id", type=PropertyType.LONG, flags=PropertyFlags.ID)


def relation(name: str, target: str, *, uid: int = 0, uid_request: bool = False) -> BindingRelation:
    return BindingRelation(
        name=name,
        target=BindingRelationTarget(name=target),
        uid=uid,
        uid_request=uid_request,
    )


def entity(
    name: str,
    *properties: BindingProperty,
    uid: int = 0,
    uid_request: bool = False,
    relations: Iterable[BindingRelation] = (),
) -> BindingEntity:
    return BindingEntity(
        name=name,
        uid=uid,
        uid_request=uid_request,
        properties=list(properties),
        relations=list(relations),
    )


def binding(*entities: BindingEntity) -> Binding:
    return Binding(entities=list(entities))


def task_binding(*extra: BindingProperty) -> Binding:
    return binding(entity("Task", id_prop(), prop("Name"), *extra))
