"""CLI context: shared options and helpers for commands."""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from schemaforge.exceptions import SchemaForgeError
from schemaforge.migrate.introspect import Introspector
from schemaforge.schema.models import Schema
from schemaforge.schema.parser import parse

DATABASE_URL_ENV = "SCHEMAFORGE_DATABASE_URL"


def get_database_url(url: str | None) -> str | None:
    """Resolve database URL from CLI arg or environment variable.

    Priority:
    1. Explicit URL argument
    2. SCHEMAFORGE_DATABASE_URL environment variable

    Without either, commands compare against an empty database.
    """
    if url:
        return url
    return os.getenv(DATABASE_URL_ENV) or None


def configure_logging(verbose: bool) -> None:
    """Send debug logging to stderr so stdout stays clean for JSON output."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)


def read_schema_file(path: str) -> Schema:
    """Read and parse a schema DSL file.

    Raises:
        SchemaForgeError: If the file cannot be read or parsed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaForgeError(f"Cannot read schema file {path}: {e}", {"path": path}) from e
    return parse(text)


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Holds output preferences and opens the database lazily.
    """

    database_url: str | None
    json_output: bool
    verbose: bool = False
    _introspector: Introspector | None = field(default=None, init=False, repr=False)

    def get_introspector(self) -> Introspector:
        """Get or create the database introspector.

        Raises:
            SchemaForgeError: If no database URL is configured
        """
        if self.database_url is None:
            raise SchemaForgeError(
                f"No database given, use --database or set {DATABASE_URL_ENV}"
            )
        if self._introspector is None:
            self._introspector = Introspector(self.database_url)
        return self._introspector

    def close(self) -> None:
        """Close database connection if open."""
        if self._introspector is not None:
            self._introspector.close()
            self._introspector = None
