"""Core types and specifications for modelsync.

Entity definitions are plain pydantic models, so they can be written by hand,
loaded from JSON, or produced by other tools. All outputs are JSON-serializable.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class FieldType(StrEnum):
    """Supported attribute types."""

    STRING = "string"
    TEXT = "text"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DATETIME = "datetime"
    JSON = "json"
    UUID = "uuid"


class OnDeleteActionType(StrEnum):
    """Referential actions when a referenced row is deleted."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"


class ReferenceSpec(BaseModel):
    """Foreign-key-like pointer from an attribute to another entity.

    Either ``entity`` names the target directly, or ``table`` names a table that
    is resolved back to an entity when references are computed.
    """

    entity: str | None = Field(default=None, description="Target entity name")
    table: str | None = Field(default=None, description="Target table name")
    key: str | None = Field(
        default=None, description="Referenced column (defaults to the target primary key)"
    )
    on_delete: OnDeleteActionType | None = Field(default=None, description="ON DELETE action")

    model_config = {"use_enum_values": True}

    @field_validator("entity", mode="before")
    @classmethod
    def _entity_handle_to_name(cls, value: Any) -> Any:
        # Accept an Entity (or anything with a name) in place of its name
        if value is not None and not isinstance(value, str) and hasattr(value, "name"):
            return value.name
        return value

    @model_validator(mode="after")
    def _one_target(self) -> ReferenceSpec:
        if (self.entity is None) == (self.table is None):
            raise ValueError("reference must name exactly one of 'entity' or 'table'")
        return self


class AttributeSpec(BaseModel):
    """Specification for one attribute (column) of an entity."""

    name: str = Field(..., description="Attribute name")
    type: FieldType = Field(default=FieldType.STRING, description="Attribute data type")
    nullable: bool = Field(default=True, description="Whether NULL is allowed")
    primary_key: bool = Field(default=False, description="Whether this is the primary key")
    unique: bool = Field(default=False, description="Whether values must be unique")
    default: Any = Field(default=None, description="Default value")
    description: str | None = Field(default=None, description="Human-readable description")
    references: ReferenceSpec | None = Field(default=None, description="Referenced entity")

    model_config = {"use_enum_values": True}


class EntitySpec(BaseModel):
    """Specification for an entity (a table/model definition)."""

    name: str = Field(..., description="Entity name (PascalCase recommended)")
    table_name: str | None = Field(
        default=None, description="Table name (snake_case of name if omitted)"
    )
    attributes: list[AttributeSpec] = Field(default_factory=list)
    description: str | None = Field(default=None)
    stringable: list[str] | None = Field(
        default=None, description="Attributes joined to render a row as text"
    )

    model_config = {"use_enum_values": True}


class SyncReport(BaseModel):
    """Outcome of a batch synchronization."""

    synchronized: list[str] = Field(default_factory=list)
    force: bool = False

    @property
    def count(self) -> int:
        return len(self.synchronized)


class FixtureResult(BaseModel):
    """Outcome of loading one fixture record."""

    entity_name: str
    status: Literal["inserted", "skipped", "failed"]
    rows_inserted: int = 0
    error: str | None = None


class EntityInfo(BaseModel):
    """Information about a registered entity (output format)."""

    name: str
    table_name: str
    primary_key: str | None
    attributes: list[str]
    references: list[str]
    features: list[str] = Field(default_factory=list)
    description: str | None = None
