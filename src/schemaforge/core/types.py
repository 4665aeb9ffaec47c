"""Core types and data contracts for schemaforge.

The change set and relation descriptors are the boundary between the compiler
and whatever renders migrations or model classes. All of them are pydantic
models so they serialize to JSON unchanged.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class RelationKind(StrEnum):
    """Relationship kinds a method can resolve to."""

    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO_MANY = "belongs_to_many"
    HAS_MANY_THROUGH = "has_many_through"
    MORPH_TO = "morph_to"  # polymorphic belongs-to, e.g. Comment.commentable()
    MORPH_MANY = "morph_many"  # polymorphic has-many, e.g. Post.comments()
    MORPH_TO_MANY = "morph_to_many"  # polymorphic many-to-many, owner side
    MORPHED_BY_MANY = "morphed_by_many"  # polymorphic many-to-many, target side

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid relation kind values."""
        return [k.value for k in cls]


class AlterKind(StrEnum):
    """Alter commands that can be declared inside an entity."""

    RENAME_FIELD = "rename_field"
    DELETE_FIELD = "delete_field"
    RENAME_INDEX = "rename_index"
    DELETE_INDEX = "delete_index"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid alter command values."""
        return [k.value for k in cls]


class ChangeKind(StrEnum):
    """Kinds of table changes in a change set."""

    CREATE_TABLE = "create_table"
    UPDATE_TABLE = "update_table"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid change kind values."""
        return [k.value for k in cls]


class FieldType(StrEnum):
    """Well-known field type tags.

    The grammar accepts any identifier as a type, these are the ones the
    compiler itself produces or treats specially.
    """

    INCREMENTS = "increments"
    BIG_INCREMENTS = "bigIncrements"
    INTEGER = "integer"
    BIG_INTEGER = "bigInteger"
    UNSIGNED_INTEGER = "unsignedInteger"
    STRING = "string"
    TEXT = "text"
    CHAR = "char"
    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    FLOAT = "float"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    JSON = "json"
    JSONB = "jsonb"
    ENUM = "enum"

    @classmethod
    def values(cls) -> list[str]:
        """Return all well-known field type values."""
        return [t.value for t in cls]


class CompilerConfig(BaseModel):
    """Settings that shape what the compiler synthesizes."""

    default_namespace: str = Field(
        default="\\App\\", description="Namespace entities belong to before any namespace line"
    )
    default_namespace_path: str = Field(
        default="app/", description="Path prefix of the default namespace"
    )
    primary_key_type: str = Field(
        default=FieldType.INCREMENTS, description="Type of the implicit `id` primary key"
    )
    foreign_key_type: str = Field(
        default=FieldType.INTEGER, description="Type of synthesized foreign key fields"
    )
    pivot_key_type: str = Field(
        default=FieldType.UNSIGNED_INTEGER, description="Type of implicit pivot table columns"
    )
    morph_type_type: str = Field(
        default=FieldType.STRING, description="Type of the `<name>_type` polymorphic column"
    )

    model_config = {"use_enum_values": True}


# === Change set (diff engine output) ===


class ColumnChange(BaseModel):
    """A column to create, or to change in place when it already exists."""

    name: str
    type: str
    param1: int | str | None = None
    param2: int | None = None
    nullable: bool
    default: str | None = None
    primary_key: bool = False
    exists: bool = Field(
        default=False, description="Column already exists, only its nullability changes"
    )
    current_nullable: bool | None = Field(
        default=None, description="Nullability found in the snapshot (set when exists)"
    )


class IndexChange(BaseModel):
    """A named index or unique constraint to create."""

    name: str
    columns: list[str]


class CommandChange(BaseModel):
    """A pending alter command (rename or delete of a column or index)."""

    kind: AlterKind
    source: str
    target: str | None = None

    model_config = {"use_enum_values": True}


class TableChange(BaseModel):
    """One create-table or update-table entry of a change set."""

    kind: ChangeKind
    table: str
    implicit_pivot: bool = False
    columns: list[ColumnChange] = Field(default_factory=list)
    indexes: list[IndexChange] = Field(default_factory=list)
    uniques: list[IndexChange] = Field(default_factory=list)
    commands: list[CommandChange] = Field(default_factory=list)

    model_config = {"use_enum_values": True}

    def column_names(self) -> list[str]:
        """Return names of the columns in this change."""
        return [c.name for c in self.columns]


class ChangeSet(BaseModel):
    """Ordered list of table changes produced by the diff engine."""

    changes: list[TableChange] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when nothing needs to change."""
        return not self.changes

    def table_names(self) -> list[str]:
        """Return table names in change order."""
        return [c.table for c in self.changes]

    def for_table(self, table: str) -> TableChange | None:
        """Return the change for a table, if any."""
        for change in self.changes:
            if change.table == table:
                return change
        return None


# === Relation descriptors (emitter input) ===


class RelationDescriptor(BaseModel):
    """Structured description of one resolved relationship method.

    Only the keys relevant to the kind are set; everything an emitter needs
    to render the relation in a target framework is here.
    """

    entity: str = Field(..., description="Fully qualified name of the owning entity")
    method: str = Field(..., description="Method name")
    kind: RelationKind
    related: str | None = Field(default=None, description="Fully qualified related entity")
    foreign_key: str | None = None
    owner_key: str | None = None
    local_key: str | None = None
    pivot_table: str | None = None
    pivot_entity: str | None = None
    pivot_fields: list[str] = Field(default_factory=list)
    foreign_pivot_key: str | None = None
    related_pivot_key: str | None = None
    through_entity: str | None = None
    first_key: str | None = None
    second_key: str | None = None
    second_local_key: str | None = None
    morph_name: str | None = None
    morph_type: str | None = None
    morph_id: str | None = None
    alias: str | None = None
    with_timestamps: bool = False

    model_config = {"use_enum_values": True}

    def to_dict(self) -> dict[str, Any]:
        """Return the descriptor without unset keys."""
        return self.model_dump(exclude_defaults=True, exclude={"kind"}) | {"kind": self.kind}
