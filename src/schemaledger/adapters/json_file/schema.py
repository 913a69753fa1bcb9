"""Pydantic models describing the persisted model file and the binding file."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ModelFileBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# region model file


class PropertyPayload(ModelFileBaseModel):
    id: str
    name: str
    index_id: str | None = Field(default=None, alias="indexId")
    type: int = 0
    flags: int | None = None
    relation_target: str | None = Field(default=None, alias="relationTarget")

    _normalize_optional = field_validator("index_id", "relation_target", mode="before")(
        _blank_to_none
    )


class RelationPayload(ModelFileBaseModel):
    id: str
    name: str
    # older files spell the key "targetId"
    target_id: str = Field(
        validation_alias=AliasChoices("targetEntityId", "targetId", "target_id"),
        serialization_alias="targetEntityId",
    )


class EntityPayload(ModelFileBaseModel):
    id: str
    last_property_id: str = Field(default="", alias="lastPropertyId")
    name: str
    properties: list[PropertyPayload] = Field(default_factory=list[PropertyPayload])
    relations: list[RelationPayload] | None = None


class ModelFilePayload(ModelFileBaseModel):
    """Top-level JSON document; field order is the on-disk key order."""

    note1: str | None = Field(default=None, alias="_note1")
    note2: str | None = Field(default=None, alias="_note2")
    note3: str | None = Field(default=None, alias="_note3")
    entities: list[EntityPayload] = Field(default_factory=list[EntityPayload])
    last_entity_id: str = Field(default="", alias="lastEntityId")
    last_index_id: str = Field(default="", alias="lastIndexId")
    last_relation_id: str = Field(default="", alias="lastRelationId")
    last_sequence_id: str = Field(default="", alias="lastSequenceId")
    model_version: int | None = Field(default=None, alias="modelVersion")
    model_version_parser_minimum: int | None = Field(
        default=None, alias="modelVersionParserMinimum"
    )
    retired_entity_uids: list[int] | None = Field(default=None, alias="retiredEntityUids")
    retired_index_uids: list[int] | None = Field(default=None, alias="retiredIndexUids")
    retired_property_uids: list[int] | None = Field(default=None, alias="retiredPropertyUids")
    retired_relation_uids: list[int] | None = Field(default=None, alias="retiredRelationUids")
    version: int | None = None

    @property
    def predates_versioning(self) -> bool:
        return (
            self.model_version is None
            and self.model_version_parser_minimum is None
            and not self.note1
        )


# endregion
# region binding file


class BindingPropertyPayload(ModelFileBaseModel):
    name: str
    type: int = 0
    flags: int = 0
    uid: int = 0
    uid_request: bool = Field(default=False, alias="uidRequest")
    index: bool = False
    relation_target: str | None = Field(default=None, alias="relationTarget")

    # filled in after reconciliation
    id: str | None = None
    index_id: str | None = Field(default=None, alias="indexId")

    _normalize_target = field_validator("relation_target", mode="before")(_blank_to_none)


class BindingRelationPayload(ModelFileBaseModel):
    name: str
    target: str
    uid: int = 0
    uid_request: bool = Field(default=False, alias="uidRequest")

    id: str | None = None
    target_id: str | None = Field(default=None, alias="targetId")


class BindingEntityPayload(ModelFileBaseModel):
    name: str
    uid: int = 0
    uid_request: bool = Field(default=False, alias="uidRequest")
    properties: list[BindingPropertyPayload] = Field(default_factory=list[BindingPropertyPayload])
    relations: list[BindingRelationPayload] = Field(default_factory=list[BindingRelationPayload])

    id: str | None = None
    last_property_id: str | None = Field(default=None, alias="lastPropertyId")


class BindingFilePayload(ModelFileBaseModel):
    entities: list[BindingEntityPayload] = Field(default_factory=list[BindingEntityPayload])


# endregion
