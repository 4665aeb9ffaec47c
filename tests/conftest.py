"""Shared test fixtures for schemaforge."""

import os
import tempfile
from collections.abc import Callable, Generator
from textwrap import dedent

import pytest

from schemaforge import Schema, SchemaSnapshot, parse
from schemaforge.schema.resolver import RelationResolver


@pytest.fixture
def compile_schema() -> Callable[[str], Schema]:
    """Parse an indented DSL snippet the way it is written in tests."""

    def _compile(text: str) -> Schema:
        return parse(dedent(text))

    return _compile


@pytest.fixture
def resolve() -> Callable[[Schema], RelationResolver]:
    """Build a memoizing resolver for a parsed schema."""

    def _resolve(schema: Schema) -> RelationResolver:
        return RelationResolver(schema)

    return _resolve


@pytest.fixture
def empty_snapshot() -> SchemaSnapshot:
    """Snapshot of a database with no tables."""
    return SchemaSnapshot()


@pytest.fixture
def temp_db() -> Generator[str, None, None]:
    """Create a temporary SQLite database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield f"sqlite:///{db_path}"
    # Cleanup
    if os.path.exists(db_path):
        os.remove(db_path)


@pytest.fixture
def schema_file(tmp_path) -> Callable[[str], str]:
    """Write a DSL snippet to a temporary file and return its path."""

    def _write(text: str, name: str = "schema.txt") -> str:
        path = tmp_path / name
        path.write_text(dedent(text), encoding="utf-8")
        return str(path)

    return _write
