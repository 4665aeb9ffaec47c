"""Schema diffing against the current database."""

from schemaforge.migrate.diff import SchemaDiffer, diff
from schemaforge.migrate.introspect import Introspector, snapshot_from_engine
from schemaforge.migrate.snapshot import ColumnSnapshot, SchemaSnapshot, TableSnapshot
from schemaforge.migrate.tables import TableBuilder, TableDefinition, table_names

__all__ = [
    "ColumnSnapshot",
    "Introspector",
    "SchemaDiffer",
    "SchemaSnapshot",
    "TableBuilder",
    "TableDefinition",
    "TableSnapshot",
    "diff",
    "snapshot_from_engine",
    "table_names",
]
