"""schemaforge - compile a compact schema DSL into tables, relations and change sets.

Entities, fields and relationship methods are written in a small indented
language. The compiler resolves what kind of relation every method is, adds
the foreign keys and pivot tables the text implies, and diffs the result
against the current database.

Example:
    from schemaforge import SchemaSnapshot, diff, parse, table_names

    schema = parse('''
        User
            name: string Index
            roles(): Role[]
            phone(): Phone

        Role
            users(): User[]

        Phone
            user() via user_id
    ''')

    schema.get_entity("Phone").field_names()  # ['id', 'user_id']
    table_names(schema)  # ['users', 'roles', 'role_user', 'phones']

    changes = diff(schema, SchemaSnapshot())
    changes.table_names()  # ['users', 'roles', 'phones', 'role_user']
"""

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
from schemaforge.exceptions import (
    AlterCommandConflictError,
    AmbiguousOneToOneError,
    DuplicateTableError,
    EntityNotFoundError,
    FieldNotFoundError,
    GrammarError,
    IntrospectionError,
    InverseCycleError,
    InverseFormatError,
    InverseMethodNotFoundError,
    JoinSyntaxError,
    MethodNotFoundError,
    MissingForeignKeyError,
    MultipleModelsWithSameShortNameError,
    NamespaceNotFoundError,
    NamespacePathError,
    ParseFailure,
    PluralEntityNameError,
    PolymorphicArrayError,
    ResolutionError,
    SchemaForgeError,
    SchemaIntegrityError,
    SnapshotError,
    UnknownTagError,
    UnsupportedRelationError,
)
from schemaforge.migrate import Introspector, SchemaDiffer, SchemaSnapshot, diff, table_names
from schemaforge.schema import (
    Entity,
    Parser,
    RelationResolver,
    Schema,
    describe_relations,
    parse,
)

__version__ = "0.1.0"

__all__ = [
    # Compiler
    "parse",
    "Parser",
    "Schema",
    "Entity",
    "RelationResolver",
    "describe_relations",
    # Diff
    "diff",
    "table_names",
    "SchemaDiffer",
    "SchemaSnapshot",
    "Introspector",
    # Types
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
    # Exceptions
    "SchemaForgeError",
    "ParseFailure",
    "GrammarError",
    "PluralEntityNameError",
    "JoinSyntaxError",
    "PolymorphicArrayError",
    "UnknownTagError",
    "NamespacePathError",
    "InverseFormatError",
    "EntityNotFoundError",
    "MultipleModelsWithSameShortNameError",
    "MethodNotFoundError",
    "FieldNotFoundError",
    "NamespaceNotFoundError",
    "ResolutionError",
    "InverseMethodNotFoundError",
    "MissingForeignKeyError",
    "AmbiguousOneToOneError",
    "UnsupportedRelationError",
    "InverseCycleError",
    "SchemaIntegrityError",
    "DuplicateTableError",
    "AlterCommandConflictError",
    "IntrospectionError",
    "SnapshotError",
]
