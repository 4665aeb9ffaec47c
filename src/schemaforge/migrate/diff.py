"""Schema diff engine.

Compares a parsed schema with a snapshot of the current database and returns
the ordered change set: entity tables first (created or updated, in entity
order), then implicit pivot tables (only ever created).

Example:
    schema = parse(text)
    changes = diff(schema, SchemaSnapshot())
    changes.table_names()  # every table is created on an empty database
"""

from __future__ import annotations

import logging

from schemaforge.core.types import ChangeKind, ChangeSet, TableChange
from schemaforge.migrate.snapshot import SchemaSnapshot
from schemaforge.migrate.tables import TableBuilder, TableDefinition
from schemaforge.schema.models import Schema
from schemaforge.schema.resolver import RelationResolver

logger = logging.getLogger(__name__)


class SchemaDiffer:
    """Computes change sets for one parsed schema."""

    def __init__(self, schema: Schema, resolver: RelationResolver | None = None) -> None:
        self.schema = schema
        self.resolver = resolver or RelationResolver(schema)

    def diff(self, snapshot: SchemaSnapshot | None = None) -> ChangeSet:
        """Compute the changes that bring `snapshot` up to the schema.

        Args:
            snapshot: Current state; None means an empty database

        Returns:
            Ordered change set, empty when nothing needs to change

        Raises:
            AlterCommandConflictError: If alter commands contradict declarations
            ResolutionError: If a relationship cannot be resolved
        """
        self.resolve_all()
        snapshot = snapshot or SchemaSnapshot()
        builder = TableBuilder(self.schema, self.resolver, snapshot)
        changes: list[TableChange] = []

        for entity in self.schema.entities:
            table = builder.build_entity_table(entity)
            if not snapshot.has_table(table.name):
                changes.append(self._emit(table, ChangeKind.CREATE_TABLE))
                continue
            table = self.filter_for_update(table, snapshot)
            if table.has_changes():
                changes.append(self._emit(table, ChangeKind.UPDATE_TABLE))
            else:
                logger.debug(f"Table {table.name} is up to date")

        for entity in self.schema.entities:
            for table in builder.build_pivot_tables(entity):
                if not snapshot.has_table(table.name):
                    changes.append(self._emit(table, ChangeKind.CREATE_TABLE))

        return ChangeSet(changes=changes)

    def resolve_all(self) -> None:
        """Resolve the kind of every method before anything is emitted.

        Raises:
            ResolutionError: For the first method that cannot be resolved
        """
        for entity in self.schema.entities:
            for method in entity.methods:
                self.resolver.kind(method)

    def filter_for_update(
        self, table: TableDefinition, snapshot: SchemaSnapshot
    ) -> TableDefinition:
        """Drop everything from `table` that the snapshot already has."""
        for column in list(table.columns):
            current = snapshot.column_nullable(table.name, column.name)
            if current is None:
                continue
            column.exists = True
            column.current_nullable = current
            if current == column.nullable:
                table.drop_column(column.name)

        # index comparison is by name only
        for name in list(table.indexes):
            if snapshot.has_index(table.name, name):
                table.drop_index(name)
        for name in list(table.uniques):
            if snapshot.has_index(table.name, name):
                table.drop_unique(name)

        return table

    def _emit(self, table: TableDefinition, kind: ChangeKind) -> TableChange:
        logger.info(f"{kind}: {table.name} ({len(table.columns)} columns)")
        return table.to_change(kind)


def diff(schema: Schema, snapshot: SchemaSnapshot | None = None) -> ChangeSet:
    """Change set between a parsed schema and a snapshot."""
    return SchemaDiffer(schema).diff(snapshot)
