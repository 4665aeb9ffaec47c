"""Core types and helpers for schemaforge."""

from schemaforge.core.types import (
    AlterKind,
    ChangeKind,
    ChangeSet,
    ColumnChange,
    CommandChange,
    CompilerConfig,
    FieldType,
    IndexChange,
    RelationDescriptor,
    RelationKind,
    TableChange,
)

__all__ = [
    "AlterKind",
    "ChangeKind",
    "ChangeSet",
    "ColumnChange",
    "CommandChange",
    "CompilerConfig",
    "FieldType",
    "IndexChange",
    "RelationDescriptor",
    "RelationKind",
    "TableChange",
]
