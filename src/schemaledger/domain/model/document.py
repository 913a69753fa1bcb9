"""The persisted model document: entities, properties, relations and uid history.

The document is the single source of truth for identity. Local ids come from
counters that only grow (``last_entity_id``, per-entity ``last_property_id``,
document-wide ``last_index_id`` and ``last_relation_id``); removed elements
have their uid moved to the matching retired list so it is never issued again.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from schemaledger.domain.errors import InvalidIdentityError, ModelValidationError

from .enums import ElementKind, has_index_flag
from .identity import UNSET, IdUid, latest
from .uid_pool import UidPool

if TYPE_CHECKING:
    from collections.abc import Iterator

log = getLogger(__name__)

MODEL_VERSION: Final[int] = 5
MINIMUM_PARSER_VERSION: Final[int] = 5
LEGACY_MODEL_VERSION: Final[int] = 4
FILE_FORMAT_VERSION: Final[int] = 1

DEFAULT_NOTES: Final[tuple[str, str, str]] = (
    "KEEP THIS FILE! Check it into a version control system (VCS) like git.",
    "The model file manages crucial IDs for your schema. With multiple developers, "
    "merge conflicts may occur.",
    "Resolve merge conflicts by keeping every UID from both sides; never reuse a "
    "retired UID.",
)


def same_name(left: str, right: str) -> bool:
    """Schema names match case-insensitively."""
    return left.casefold() == right.casefold()


@dataclass(eq=False, kw_only=True)
class ModelProperty:
    id: IdUid
    name: str
    type: int = 0
    flags: int = 0
    index_id: IdUid | None = None
    relation_target: str | None = None

    _entity: ModelEntity | None = field(default=None, init=False, repr=False)

    @property
    def entity(self) -> ModelEntity:
        if self._entity is None:
            raise ValueError(f"property {self.name} is not attached to an entity")
        return self._entity

    def create_index(self) -> IdUid:
        """Allocate an index identity from the document-wide index counter."""

        if self.index_id is not None:
            raise ValueError(f"property {self.name} already has index {self.index_id}")
        model = self.entity.model
        index_id = IdUid(model.last_index_id.next_id(), model.uid_pool.generate())
        self.index_id = index_id
        model.last_index_id = latest(model.last_index_id, index_id)
        log.debug("Created index %s for property %s.%s", index_id, self.entity.name, self.name)
        return index_id

    def remove_index(self) -> None:
        if self.index_id is None:
            raise ValueError(f"property {self.name} has no index")
        self.entity.model.retire(ElementKind.INDEX, self.index_id.uid)
        log.debug("Removed index %s of property %s.%s", self.index_id, self.entity.name, self.name)
        self.index_id = None


@dataclass(eq=False, kw_only=True)
class StandaloneRelation:
    """Many-to-many link owned by the source entity, targeting an entity by identity."""

    id: IdUid
    name: str
    target_id: IdUid = UNSET

    def set_target(self, target: ModelEntity) -> None:
        self.target_id = target.id


@dataclass(eq=False, kw_only=True)
class ModelEntity:
    id: IdUid
    name: str
    last_property_id: IdUid = UNSET
    properties: list[ModelProperty] = field(default_factory=list["ModelProperty"])
    relations: list[StandaloneRelation] = field(default_factory=list["StandaloneRelation"])

    _model: ModelDocument | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        for model_property in self.properties:
            model_property._entity = self  # noqa: SLF001

    @property
    def model(self) -> ModelDocument:
        if self._model is None:
            raise ValueError(f"entity {self.name} is not attached to a model document")
        return self._model

    # region properties

    def find_property_by_uid(self, uid: int) -> ModelProperty | None:
        for model_property in self.properties:
            if model_property.id.uid == uid:
                return model_property
        return None

    def find_property_by_name(self, name: str) -> ModelProperty | None:
        for model_property in self.properties:
            if same_name(model_property.name, name):
                return model_property
        return None

    def create_property(self, name: str = "") -> ModelProperty:
        property_id = IdUid(self.last_property_id.next_id(), self.model.uid_pool.generate())
        model_property = ModelProperty(id=property_id, name=name)
        model_property._entity = self  # noqa: SLF001
        self.properties.append(model_property)
        self.last_property_id = latest(self.last_property_id, property_id)
        log.debug("Created property %s.%s with %s", self.name, name, property_id)
        return model_property

    def remove_property(self, model_property: ModelProperty) -> None:
        if model_property not in self.properties:
            raise ValueError(f"property {model_property.name} not owned by entity {self.name}")
        if model_property.index_id is not None:
            model_property.remove_index()
        self.model.retire(ElementKind.PROPERTY, model_property.id.uid)
        self.properties.remove(model_property)
        model_property._entity = None  # noqa: SLF001
        log.debug("Removed property %s.%s (%s)", self.name, model_property.name, model_property.id)

    # endregion
    # region relations

    def find_relation_by_uid(self, uid: int) -> StandaloneRelation | None:
        for relation in self.relations:
            if relation.id.uid == uid:
                return relation
        return None

    def find_relation_by_name(self, name: str) -> StandaloneRelation | None:
        for relation in self.relations:
            if same_name(relation.name, name):
                return relation
        return None

    def create_relation(self, name: str = "") -> StandaloneRelation:
        """Allocate a relation identity from the document-wide relation counter."""

        model = self.model
        relation_id = IdUid(model.last_relation_id.next_id(), model.uid_pool.generate())
        relation = StandaloneRelation(id=relation_id, name=name)
        self.relations.append(relation)
        model.last_relation_id = latest(model.last_relation_id, relation_id)
        log.debug("Created relation %s.%s with %s", self.name, name, relation_id)
        return relation

    def remove_relation(self, relation: StandaloneRelation) -> None:
        if relation not in self.relations:
            raise ValueError(f"relation {relation.name} not owned by entity {self.name}")
        self.model.retire(ElementKind.RELATION, relation.id.uid)
        self.relations.remove(relation)
        log.debug("Removed relation %s.%s (%s)", self.name, relation.name, relation.id)

    # endregion


@dataclass(eq=False, kw_only=True)
class ModelDocument:
    entities: list[ModelEntity] = field(default_factory=list["ModelEntity"])
    last_entity_id: IdUid = UNSET
    last_index_id: IdUid = UNSET
    last_relation_id: IdUid = UNSET
    last_sequence_id: IdUid = UNSET  # unused, kept so the file round-trips

    retired_entity_uids: list[int] = field(default_factory=list[int])
    retired_index_uids: list[int] = field(default_factory=list[int])
    retired_property_uids: list[int] = field(default_factory=list[int])
    retired_relation_uids: list[int] = field(default_factory=list[int])

    model_version: int = MODEL_VERSION
    minimum_parser_version: int = MINIMUM_PARSER_VERSION
    version: int = FILE_FORMAT_VERSION
    notes: tuple[str, str, str] = DEFAULT_NOTES

    _uid_pool: UidPool | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        for entity in self.entities:
            entity._model = self  # noqa: SLF001

    @property
    def uid_pool(self) -> UidPool:
        """Pool shared by every allocation made against this document."""
        if self._uid_pool is None:
            self._uid_pool = UidPool(self)
        return self._uid_pool

    def use_uid_pool(self, pool: UidPool) -> None:
        self._uid_pool = pool

    # region entities

    def find_entity_by_uid(self, uid: int) -> ModelEntity | None:
        for entity in self.entities:
            if entity.id.uid == uid:
                return entity
        return None

    def find_entity_by_name(self, name: str) -> ModelEntity | None:
        for entity in self.entities:
            if same_name(entity.name, name):
                return entity
        return None

    def create_entity(self, name: str) -> ModelEntity:
        entity_id = IdUid(self.last_entity_id.next_id(), self.uid_pool.generate())
        entity = ModelEntity(id=entity_id, name=name)
        entity._model = self  # noqa: SLF001
        self.entities.append(entity)
        self.last_entity_id = latest(self.last_entity_id, entity_id)
        log.debug("Created entity %s with %s", name, entity_id)
        return entity

    def remove_entity(self, entity: ModelEntity) -> None:
        """Remove an entity together with its properties, indexes and relations."""

        if entity not in self.entities:
            raise ValueError(f"entity {entity.name} not part of this model")
        for other in self.entities:
            if other is entity:
                continue
            for relation in other.relations:
                if relation.target_id.uid == entity.id.uid:
                    raise ValueError(
                        f"entity {entity.name} is still targeted by relation "
                        f"{other.name}.{relation.name}"
                    )
        for model_property in list(entity.properties):
            entity.remove_property(model_property)
        for relation in list(entity.relations):
            entity.remove_relation(relation)
        self.retire(ElementKind.ENTITY, entity.id.uid)
        self.entities.remove(entity)
        entity._model = None  # noqa: SLF001
        log.debug("Removed entity %s (%s)", entity.name, entity.id)

    # endregion
    # region uid bookkeeping

    def retired_uids(self, kind: ElementKind) -> list[int]:
        match kind:
            case ElementKind.ENTITY:
                return self.retired_entity_uids
            case ElementKind.PROPERTY:
                return self.retired_property_uids
            case ElementKind.INDEX:
                return self.retired_index_uids
            case ElementKind.RELATION:
                return self.retired_relation_uids

    def retire(self, kind: ElementKind, uid: int) -> None:
        retired = self.retired_uids(kind)
        if uid not in retired:
            retired.append(uid)

    def iter_identities(self) -> Iterator[tuple[ElementKind, IdUid, str]]:
        """Yield every active identity with its kind and a dotted path."""

        for entity in self.entities:
            yield ElementKind.ENTITY, entity.id, entity.name
            for model_property in entity.properties:
                path = f"{entity.name}.{model_property.name}"
                yield ElementKind.PROPERTY, model_property.id, path
                if model_property.index_id is not None:
                    yield ElementKind.INDEX, model_property.index_id, path
            for relation in entity.relations:
                yield ElementKind.RELATION, relation.id, f"{entity.name}.{relation.name}"

    def all_uids(self) -> set[int]:
        uids = {identity.uid for _kind, identity, _path in self.iter_identities()}
        for entity in self.entities:
            uids.add(entity.last_property_id.uid)
        for counter in (
            self.last_entity_id,
            self.last_index_id,
            self.last_relation_id,
            self.last_sequence_id,
        ):
            uids.add(counter.uid)
        for kind in ElementKind:
            uids.update(self.retired_uids(kind))
        uids.discard(UNSET.uid)
        return uids

    # endregion
    # region versioning & validation

    def is_supported_by(self, parser_version: int) -> bool:
        return self.minimum_parser_version <= parser_version

    def upgrade_version(self) -> None:
        """Stamp the document with the current model format after a merge."""

        if self.model_version < MODEL_VERSION:
            log.info("Upgrading model version %s -> %s", self.model_version, MODEL_VERSION)
            self.model_version = MODEL_VERSION
        self.minimum_parser_version = max(self.minimum_parser_version, MINIMUM_PARSER_VERSION)

    def validate(self) -> None:
        """Check every identity invariant; raise ``ModelValidationError`` on the first breach."""

        try:
            self._validate_identities()
        except InvalidIdentityError as exc:
            raise ModelValidationError(f"invalid model: {exc}") from exc
        self._validate_counters()
        self._validate_uniqueness()
        self._validate_indexes()
        self._validate_relation_targets()

    def _validate_identities(self) -> None:
        for kind, identity, path in self.iter_identities():
            try:
                identity.validate()
            except InvalidIdentityError as exc:
                raise InvalidIdentityError(f"{kind} {path}: {exc}") from exc
        for entity in self.entities:
            if entity.properties:
                entity.last_property_id.validate()
        if self.entities:
            self.last_entity_id.validate()

    def _validate_counters(self) -> None:
        def check(kind: ElementKind, identity: IdUid, last: IdUid, path: str) -> None:
            if identity.id > last.id:
                raise ModelValidationError(
                    f"{kind} {path} id {identity.id} is above the last used id {last.id}"
                )
            if identity.id == last.id and identity.uid != last.uid:
                raise ModelValidationError(
                    f"{kind} {path} uid {identity.uid} does not match the last used {last}"
                )

        for entity in self.entities:
            check(ElementKind.ENTITY, entity.id, self.last_entity_id, entity.name)
            for model_property in entity.properties:
                path = f"{entity.name}.{model_property.name}"
                check(ElementKind.PROPERTY, model_property.id, entity.last_property_id, path)
                if model_property.index_id is not None:
                    check(ElementKind.INDEX, model_property.index_id, self.last_index_id, path)
            for relation in entity.relations:
                path = f"{entity.name}.{relation.name}"
                check(ElementKind.RELATION, relation.id, self.last_relation_id, path)

    def _validate_uniqueness(self) -> None:
        uid_counts: Counter[int] = Counter()
        for _kind, identity, _path in self.iter_identities():
            uid_counts[identity.uid] += 1
        for kind in ElementKind:
            uid_counts.update(set(self.retired_uids(kind)))
        duplicates = sorted(uid for uid, count in uid_counts.items() if count > 1)
        if duplicates:
            raise ModelValidationError(f"uids used more than once: {duplicates}")

        entity_names = Counter(entity.name.casefold() for entity in self.entities)
        _raise_on_repeats("entity name", entity_names)
        _raise_on_repeats("entity id", Counter(entity.id.id for entity in self.entities))
        index_ids: Counter[int] = Counter()
        relation_ids: Counter[int] = Counter()
        for entity in self.entities:
            _raise_on_repeats(
                f"property name in {entity.name}",
                Counter(p.name.casefold() for p in entity.properties),
            )
            _raise_on_repeats(
                f"property id in {entity.name}",
                Counter(p.id.id for p in entity.properties),
            )
            _raise_on_repeats(
                f"relation name in {entity.name}",
                Counter(r.name.casefold() for r in entity.relations),
            )
            index_ids.update(p.index_id.id for p in entity.properties if p.index_id is not None)
            relation_ids.update(r.id.id for r in entity.relations)
        _raise_on_repeats("index id", index_ids)
        _raise_on_repeats("relation id", relation_ids)

    def _validate_indexes(self) -> None:
        for entity in self.entities:
            for model_property in entity.properties:
                if (model_property.index_id is not None) != has_index_flag(model_property.flags):
                    raise ModelValidationError(
                        f"property {entity.name}.{model_property.name} index id "
                        f"{model_property.index_id} disagrees with flags {model_property.flags}"
                    )

    def _validate_relation_targets(self) -> None:
        entity_ids = {entity.id for entity in self.entities}
        for entity in self.entities:
            for relation in entity.relations:
                if relation.target_id not in entity_ids:
                    raise ModelValidationError(
                        f"relation {entity.name}.{relation.name} targets unknown "
                        f"entity {relation.target_id}"
                    )

    # endregion


def _raise_on_repeats(label: str, counts: Counter[str] | Counter[int]) -> None:
    repeated = sorted(str(value) for value, count in counts.items() if count > 1)
    if repeated:
        raise ModelValidationError(f"duplicate {label}: {', '.join(repeated)}")
