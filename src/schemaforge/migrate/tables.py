"""Table definitions derived from a parsed schema.

A TableDefinition is the desired state of one table: its columns, pending alter
commands, indexes and unique constraints. Entity tables come from entity
fields; implicit pivot tables come from many-to-many methods that have no
declared pivot entity.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from schemaforge.core.types import (
    ChangeKind,
    ColumnChange,
    CommandChange,
    IndexChange,
    TableChange,
)
from schemaforge.exceptions import AlterCommandConflictError
from schemaforge.migrate.snapshot import SchemaSnapshot
from schemaforge.schema.models import AlterCommand, Entity, Field, Schema
from schemaforge.schema.resolver import RelationResolver


@dataclass
class ColumnDefinition:
    """Desired state of one column."""

    name: str
    field_type: str
    nullable: bool
    param1: int | str | None = None
    param2: int | None = None
    default: str | None = None
    primary_key: bool = False
    exists: bool = False
    current_nullable: bool | None = None

    @classmethod
    def from_field(cls, source: Field) -> ColumnDefinition:
        return cls(
            name=source.name,
            field_type=source.field_type,
            nullable=source.resolved_nullable(),
            param1=source.param1,
            param2=source.param2,
            default=source.default,
            primary_key=source.primary_key,
        )

    def to_change(self) -> ColumnChange:
        return ColumnChange(
            name=self.name,
            type=self.field_type,
            param1=self.param1,
            param2=self.param2,
            nullable=self.nullable,
            default=self.default,
            primary_key=self.primary_key,
            exists=self.exists,
            current_nullable=self.current_nullable,
        )


@dataclass
class TableDefinition:
    """Desired state of one table."""

    name: str
    columns: list[ColumnDefinition] = field(default_factory=list)
    commands: list[AlterCommand] = field(default_factory=list)
    indexes: dict[str, list[str]] = field(default_factory=dict)
    uniques: dict[str, list[str]] = field(default_factory=dict)
    implicit_pivot: bool = False

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def drop_column(self, name: str) -> None:
        self.columns = [c for c in self.columns if c.name != name]

    def drop_index(self, name: str) -> None:
        self.indexes.pop(name, None)

    def drop_unique(self, name: str) -> None:
        self.uniques.pop(name, None)

    def has_changes(self) -> bool:
        return bool(self.columns or self.indexes or self.uniques or self.commands)

    def to_change(self, kind: ChangeKind) -> TableChange:
        return TableChange(
            kind=kind,
            table=self.name,
            implicit_pivot=self.implicit_pivot,
            columns=[c.to_change() for c in self.columns],
            indexes=[IndexChange(name=n, columns=cols) for n, cols in self.indexes.items()],
            uniques=[IndexChange(name=n, columns=cols) for n, cols in self.uniques.items()],
            commands=[
                CommandChange(kind=c.kind, source=c.source, target=c.target) for c in self.commands
            ],
        )


class TableBuilder:
    """Builds table definitions for the entities of a schema.

    Alter commands are only carried while still pending, i.e. while the
    column or index they act on still exists in the snapshot.
    """

    def __init__(
        self,
        schema: Schema,
        resolver: RelationResolver | None = None,
        snapshot: SchemaSnapshot | None = None,
    ) -> None:
        self.schema = schema
        self.resolver = resolver or RelationResolver(schema)
        self.snapshot = snapshot or SchemaSnapshot()

    def command_is_pending(self, entity: Entity, command: AlterCommand) -> bool:
        """True if the command still has something to act on."""
        if command.targets_index:
            return self.snapshot.has_index(entity.table_name, command.source)
        return self.snapshot.has_column(entity.table_name, command.source)

    def build_entity_table(self, entity: Entity) -> TableDefinition:
        """Table definition of an entity.

        Raises:
            AlterCommandConflictError: If a rename or delete command acts on a
                field or index that is also declared
        """
        pending = [c for c in entity.commands if self.command_is_pending(entity, c)]
        table = TableDefinition(name=entity.table_name, commands=pending)

        for source in entity.fields:
            if self._field_is_renamed(entity, source, pending):
                continue
            table.columns.append(ColumnDefinition.from_field(source))

            for index_name in source.index_names:
                if self._index_is_renamed(entity, source, index_name, pending):
                    continue
                table.indexes.setdefault(index_name, []).append(source.name)

            for unique_name in source.unique_names:
                table.uniques.setdefault(unique_name, []).append(source.name)

        return table

    def _field_is_renamed(
        self, entity: Entity, source: Field, pending: list[AlterCommand]
    ) -> bool:
        for command in entity.commands:
            if command.is_rename_field and command.source == source.name:
                raise AlterCommandConflictError(
                    f"You have a `RENAME FIELD {source.name}` command and you also try to "
                    f"create the same field `{source.name}` (in {entity.short_name}). "
                    f"You probably want to change the field name to `{command.target}`",
                    {"entity_name": entity.short_name, "field_name": source.name},
                )
        # the renamed column is created by the rename itself
        return any(c.is_rename_field and c.target == source.name for c in pending)

    def _index_is_renamed(
        self, entity: Entity, source: Field, index_name: str, pending: list[AlterCommand]
    ) -> bool:
        where = f"`{entity.short_name}.{source.name}`"
        for command in entity.commands:
            if command.source != index_name:
                continue
            if command.is_rename_index:
                raise AlterCommandConflictError(
                    f"You have a `RENAME INDEX {index_name}` command and you also try to "
                    f"create Index({index_name}) on a field {where}. You probably want to "
                    f"update the name of index to Index({command.target})",
                    {"entity_name": entity.short_name, "index_name": index_name},
                )
            if command.is_delete_index:
                raise AlterCommandConflictError(
                    f"You have a `DELETE INDEX {index_name}` command and you also try to "
                    f"create Index({index_name}) on a field {where}. You probably want to "
                    f"remove Index({index_name}) from the field.",
                    {"entity_name": entity.short_name, "index_name": index_name},
                )
        return any(c.is_rename_index and c.target == index_name for c in pending)

    def build_pivot_tables(self, entity: Entity) -> list[TableDefinition]:
        """Implicit pivot tables owned by an entity's many-to-many methods."""
        tables = []
        for method in entity.methods:
            if not self.resolver.is_many_to_many(method):
                continue
            if not self.resolver.is_many_to_many_first(method):
                continue
            if self.resolver.explicit_pivot_entity(method) is not None:
                continue
            name = self.resolver.pivot_table_name(method)
            columns = [
                ColumnDefinition(
                    name=col, field_type=self.schema.config.pivot_key_type, nullable=nullable
                )
                for col, nullable in self.resolver.pivot_columns(method)
            ]
            tables.append(TableDefinition(name=name, columns=columns, implicit_pivot=True))
        return tables


def table_names(schema: Schema) -> list[str]:
    """Each entity's table followed by the implicit pivot tables it owns."""
    builder = TableBuilder(schema)
    names = []
    for entity in schema.entities:
        names.append(entity.table_name)
        names.extend(t.name for t in builder.build_pivot_tables(entity))
    return names
