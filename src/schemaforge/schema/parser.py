"""Declaration parser.

Walks the logical lines of a schema document, builds the Schema graph and
runs implicit field synthesis on the result.

Example:
    schema = parse('''
        User
            name: string
            roles(): Role[]
        Role
            users(): User[]
    ''')
    [e.table_name for e in schema.entities]  # ['users', 'roles']
"""

from __future__ import annotations

import logging

from schemaforge.core.inflection import is_plural, table_name_for
from schemaforge.core.types import CompilerConfig
from schemaforge.exceptions import ParseFailure, PluralEntityNameError
from schemaforge.schema.grammar import (
    AlterDecl,
    Declaration,
    DefaultDecl,
    EntityDecl,
    FieldDecl,
    MethodDecl,
    NamespaceDecl,
    match_nested,
    match_top_level,
)
from schemaforge.schema.lexer import LogicalLine, logical_lines
from schemaforge.schema.models import (
    AlterCommand,
    Entity,
    Field,
    Method,
    Namespace,
    Schema,
    normalize_namespace,
)
from schemaforge.schema.synthesis import synthesize

logger = logging.getLogger(__name__)


class Parser:
    """Turns schema DSL text into a synthesized Schema."""

    def __init__(self, config: CompilerConfig | None = None) -> None:
        self.config = config or CompilerConfig()

    def parse(self, text: str) -> Schema:
        """Parse a schema document.

        Args:
            text: The whole DSL document

        Returns:
            The schema graph with implicit fields added

        Raises:
            ParseFailure: If a line matches no grammar rule
            GrammarError: If a line is recognised but invalid
            DuplicateTableError: If two entities share a table
            ResolutionError: If synthesis cannot resolve a relationship
        """
        schema = Schema(self.config)
        schema.add_namespace(
            Namespace(self.config.default_namespace, self.config.default_namespace_path)
        )
        namespace = normalize_namespace(self.config.default_namespace)
        entity: Entity | None = None

        for line in logical_lines(text):
            decl = self._match(line, entity)
            match decl:
                case None:
                    raise ParseFailure(line.number, line.text)
                case DefaultDecl(tags=tags):
                    schema.update_defaults(list(tags))
                case NamespaceDecl(name=name, path=path):
                    schema.add_namespace(Namespace(name, path))
                    namespace = name
                case EntityDecl():
                    entity = schema.add_entity(self._build_entity(decl, namespace))
                    logger.debug(f"Registered entity {entity.full_name} ({entity.table_name})")
                case FieldDecl():
                    entity.add_field(self._build_field(decl, entity, schema))  # type: ignore[union-attr]
                case MethodDecl():
                    entity.add_method(self._build_method(decl))  # type: ignore[union-attr]
                case AlterDecl(kind=kind, source=source, target=target):
                    entity.add_command(AlterCommand(kind, source, target))  # type: ignore[union-attr]

        synthesize(schema)
        logger.debug(f"Parsed {len(schema.entities)} entities")
        return schema

    def _match(self, line: LogicalLine, entity: Entity | None) -> Declaration | None:
        if line.top_level:
            return match_top_level(line.text, self.config)
        if entity is None:
            return None
        return match_nested(line.text, entity.short_name)

    def _build_entity(self, decl: EntityDecl, namespace: str) -> Entity:
        qualified_ns, short_name = decl.split_name()
        if is_plural(short_name):
            raise PluralEntityNameError(short_name)

        return Entity(
            short_name=short_name,
            namespace=qualified_ns if qualified_ns is not None else namespace,
            table_name=decl.table or table_name_for(short_name),
        )

    def _build_field(self, decl: FieldDecl, entity: Entity, schema: Schema) -> Field:
        table = entity.table_name
        return Field(
            name=decl.name,
            field_type=decl.field_type,
            param1=decl.param1,
            param2=decl.param2,
            nullable=decl.nullable,
            primary_key=decl.primary_key,
            index_names=[n or f"{table}_{decl.name}_idx" for n in decl.indexes],
            unique_names=[n or f"{table}_{decl.name}_unique_idx" for n in decl.uniques],
            default=decl.default,
            guarded=decl.guarded,
            default_nullable=schema.default_nullable,
            default_guarded=schema.default_guarded,
        )

    def _build_method(self, decl: MethodDecl) -> Method:
        return Method(
            name=decl.name,
            explicit_return_type=decl.return_type,
            via=decl.via,
            inverse_of=decl.inverse_of,
            join=decl.join,
            alias=decl.alias,
            pivot_with_timestamps=decl.pivot_with_timestamps,
            nullable=decl.nullable,
        )


def parse(text: str, config: CompilerConfig | None = None) -> Schema:
    """Parse a schema document with the given (or default) configuration."""
    return Parser(config).parse(text)
