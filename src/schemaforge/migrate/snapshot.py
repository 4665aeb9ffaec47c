"""Current-schema snapshot.

A snapshot is what the diff engine compares a parsed schema against: table
names, column nullability and index names. It is built by hand in tests, by the
introspector from a live database, or by applying a change set to a previous
snapshot.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from schemaforge.core.types import AlterKind, ChangeKind, ChangeSet, TableChange
from schemaforge.exceptions import SnapshotError

logger = logging.getLogger(__name__)


class ColumnSnapshot(BaseModel):
    """An existing column."""

    nullable: bool = True
    type: str | None = Field(default=None, description="Database type, informational only")


class TableSnapshot(BaseModel):
    """An existing table with its columns and index names."""

    columns: dict[str, ColumnSnapshot] = Field(default_factory=dict)
    indexes: list[str] = Field(
        default_factory=list, description="Index and unique constraint names"
    )


class SchemaSnapshot(BaseModel):
    """The current schema of a database."""

    tables: dict[str, TableSnapshot] = Field(default_factory=dict)

    @classmethod
    def from_json(cls, data: str) -> SchemaSnapshot:
        """Load a snapshot from its JSON form.

        Raises:
            SnapshotError: If the JSON is invalid or has the wrong shape
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise SnapshotError(f"Invalid snapshot: {e}") from e

    @classmethod
    def load(cls, path: str | Path) -> SchemaSnapshot:
        """Read a snapshot JSON file.

        Raises:
            SnapshotError: If the file cannot be read or parsed
        """
        try:
            data = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise SnapshotError(f"Cannot read snapshot {path}: {e}", {"path": str(path)}) from e
        return cls.from_json(data)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), indent=2)

    # === Queries ===

    def has_table(self, table: str) -> bool:
        return table in self.tables

    def has_column(self, table: str, column: str) -> bool:
        return self.has_table(table) and column in self.tables[table].columns

    def column_nullable(self, table: str, column: str) -> bool | None:
        """Nullability of an existing column, None if the column is unknown."""
        if not self.has_column(table, column):
            return None
        return self.tables[table].columns[column].nullable

    def has_index(self, table: str, index: str) -> bool:
        return self.has_table(table) and index in self.tables[table].indexes

    # === Applying changes ===

    def apply(self, change_set: ChangeSet) -> SchemaSnapshot:
        """Return a new snapshot with the change set's effects applied.

        Raises:
            SnapshotError: If a change does not fit the snapshot (creating an
                existing table, renaming a missing column)
        """
        result = self.model_copy(deep=True)
        for change in change_set.changes:
            if change.kind == ChangeKind.CREATE_TABLE:
                result._create(change)
            else:
                result._update(change)
            logger.debug(f"Applied {change.kind} {change.table} to snapshot")
        return result

    def _create(self, change: TableChange) -> None:
        if self.has_table(change.table):
            raise SnapshotError(
                f"Cannot create table {change.table}: it already exists",
                {"table": change.table},
            )
        self.tables[change.table] = TableSnapshot()
        self._add_columns_and_indexes(change)

    def _update(self, change: TableChange) -> None:
        table = self.tables.get(change.table)
        if table is None:
            raise SnapshotError(
                f"Cannot update table {change.table}: it does not exist",
                {"table": change.table},
            )

        for command in change.commands:
            match command.kind:
                case AlterKind.RENAME_FIELD:
                    column = self._pop_column(table, change.table, command.source)
                    table.columns[command.target] = column  # type: ignore[index]
                case AlterKind.DELETE_FIELD:
                    self._pop_column(table, change.table, command.source)
                case AlterKind.RENAME_INDEX:
                    position = self._index_position(table, change.table, command.source)
                    table.indexes[position] = command.target  # type: ignore[call-overload]
                case AlterKind.DELETE_INDEX:
                    table.indexes.pop(self._index_position(table, change.table, command.source))

        self._add_columns_and_indexes(change)

    def _add_columns_and_indexes(self, change: TableChange) -> None:
        table = self.tables[change.table]
        for column in change.columns:
            existing = table.columns.get(column.name)
            if existing is not None:
                existing.nullable = column.nullable
            else:
                table.columns[column.name] = ColumnSnapshot(
                    nullable=column.nullable, type=column.type
                )
        for index in [*change.indexes, *change.uniques]:
            if index.name not in table.indexes:
                table.indexes.append(index.name)

    @staticmethod
    def _pop_column(table: TableSnapshot, table_name: str, column: str) -> ColumnSnapshot:
        if column not in table.columns:
            raise SnapshotError(
                f"Column {table_name}.{column} does not exist",
                {"table": table_name, "column": column},
            )
        return table.columns.pop(column)

    @staticmethod
    def _index_position(table: TableSnapshot, table_name: str, index: str) -> int:
        if index not in table.indexes:
            raise SnapshotError(
                f"Index {index} does not exist on {table_name}",
                {"table": table_name, "index": index},
            )
        return table.indexes.index(index)


def build_snapshot(
    tables: dict[str, dict[str, bool]], indexes: dict[str, list[str]] | None = None
) -> SchemaSnapshot:
    """Shorthand constructor: {table: {column: nullable}} plus {table: [index names]}."""
    indexes = indexes or {}
    return SchemaSnapshot(
        tables={
            name: TableSnapshot(
                columns={
                    col: ColumnSnapshot(nullable=nullable) for col, nullable in columns.items()
                },
                indexes=list(indexes.get(name, [])),
            )
            for name, columns in tables.items()
        }
    )
