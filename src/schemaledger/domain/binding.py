"""Binding descriptors: the parsed schema handed to the reconciler.

Descriptors never originate identity. A non-zero ``uid`` is an explicit hint
from the source annotations; after reconciliation the resolved ``id``/``uid``
pairs are copied back here for the code-emission stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from schemaledger.domain.model import UNSET, IdUid, PropertyFlags, has_index_flag


@dataclass(kw_only=True)
class BindingIndex:
    id: int = 0
    uid: int = 0


@dataclass(kw_only=True)
class BindingProperty:
    name: str
    type: int = 0
    flags: int = 0
    uid: int = 0
    uid_request: bool = False
    index: BindingIndex | None = None
    relation_target: str | None = None

    id: int = 0

    @property
    def wants_index(self) -> bool:
        return self.index is not None or has_index_flag(self.flags)

    def combined_flags(self) -> int:
        """Flags as stored in the model; an index request implies ``INDEXED``."""
        if self.wants_index and not has_index_flag(self.flags):
            return self.flags | PropertyFlags.INDEXED
        return self.flags


@dataclass(kw_only=True)
class BindingRelationTarget:
    name: str
    id: int = 0
    uid: int = 0


@dataclass(kw_only=True)
class BindingRelation:
    name: str
    target: BindingRelationTarget
    uid: int = 0
    uid_request: bool = False

    id: int = 0


@dataclass(kw_only=True)
class BindingEntity:
    name: str
    uid: int = 0
    uid_request: bool = False
    properties: list[BindingProperty] = field(default_factory=list[BindingProperty])
    relations: list[BindingRelation] = field(default_factory=list[BindingRelation])

    id: int = 0
    last_property_id: IdUid = UNSET

    def property_named(self, name: str) -> BindingProperty | None:
        for binding_property in self.properties:
            if binding_property.name == name:
                return binding_property
        return None


@dataclass(kw_only=True)
class Binding:
    entities: list[BindingEntity] = field(default_factory=list[BindingEntity])
