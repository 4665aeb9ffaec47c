"""In-memory schema graph.

The Schema is the single owner of everything parsed from a document.
Entities live in an ordered arena and know their own position in it; fields,
methods and alter commands point back at their entity by that index, never by
reference, so every lookup goes through the Schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from schemaforge.core.types import AlterKind, CompilerConfig
from schemaforge.core.inflection import is_plural, singularize, studly
from schemaforge.exceptions import (
    DuplicateTableError,
    EntityNotFoundError,
    FieldNotFoundError,
    MethodNotFoundError,
    MultipleModelsWithSameShortNameError,
    NamespaceNotFoundError,
)

if TYPE_CHECKING:
    from schemaforge.schema.joins import JoinExpression


def normalize_namespace(name: str) -> str:
    """Wrap a namespace in single backslashes (App\\Models -> \\App\\Models\\)."""
    return "\\" + name.strip("\\") + "\\"


def normalize_path(path: str) -> str:
    """Strip surrounding slashes and end with one (/app/Models -> app/Models/)."""
    return path.strip("/") + "/"


@dataclass
class Namespace:
    """Maps a namespace to the directory its entities are written to."""

    name: str
    path: str

    def __post_init__(self) -> None:
        self.name = normalize_namespace(self.name)
        self.path = normalize_path(self.path)


@dataclass(eq=False)
class Field:
    """A column of an entity's table, declared or synthesized."""

    name: str
    field_type: str
    owner: int = -1
    param1: int | str | None = None
    param2: int | None = None
    nullable: bool | None = None  # None: use the policy in force at declaration
    primary_key: bool = False
    index_names: list[str] = field(default_factory=list)
    unique_names: list[str] = field(default_factory=list)
    default: str | None = None
    guarded: bool | None = None
    implicit: bool = False
    # `default` policy captured when the line was read
    default_nullable: bool = True
    default_guarded: bool = False

    def resolved_nullable(self) -> bool:
        """Nullability with the default policy applied."""
        return self.default_nullable if self.nullable is None else self.nullable

    def resolved_guarded(self) -> bool:
        """Guarded flag with the default policy applied."""
        return self.default_guarded if self.guarded is None else self.guarded


@dataclass(eq=False)
class Method:
    """A relationship declared as `name() [via X][: Type tags]`.

    The relation kind is not stored, it is computed by the resolver. Everything
    here can be answered from the method's own line.
    """

    name: str
    owner: int = -1
    explicit_return_type: str | None = None
    via: str | None = None
    inverse_of: str | None = None
    join: JoinExpression | None = None
    alias: str | None = None
    pivot_with_timestamps: bool = False
    nullable: bool | None = None

    @property
    def return_type(self) -> str:
        """Declared return type, or the one implied by the method name.

        `roles()` implies `Role[]`, `home_phone()` implies `HomePhone`.
        """
        if self.explicit_return_type:
            return self.explicit_return_type
        if is_plural(self.name):
            return studly(singularize(self.name)) + "[]"
        return studly(self.name)

    @property
    def return_type_single(self) -> str:
        """Return type without the `[]` multiplicity marker."""
        rtype = self.return_type
        return rtype[:-2] if rtype.endswith("[]") else rtype

    @property
    def returns_many(self) -> bool:
        if self.explicit_return_type:
            return self.explicit_return_type.endswith("[]")
        return is_plural(self.name)

    @property
    def returns_one(self) -> bool:
        return not self.returns_many

    @property
    def is_polymorphic(self) -> bool:
        return "|" in self.return_type

    @property
    def polymorphic_types(self) -> list[str]:
        return self.return_type.split("|")

    def can_return(self, type_name: str) -> bool:
        """True if this method's return type is, or includes, `type_name`."""
        if self.return_type == type_name:
            return True
        if self.is_polymorphic:
            return type_name in self.polymorphic_types
        return False


@dataclass(eq=False)
class AlterCommand:
    """RENAME/DELETE of a column or index, recorded on its entity."""

    kind: AlterKind
    source: str
    target: str | None = None
    owner: int = -1

    @property
    def is_rename_field(self) -> bool:
        return self.kind == AlterKind.RENAME_FIELD

    @property
    def is_delete_field(self) -> bool:
        return self.kind == AlterKind.DELETE_FIELD

    @property
    def is_rename_index(self) -> bool:
        return self.kind == AlterKind.RENAME_INDEX

    @property
    def is_delete_index(self) -> bool:
        return self.kind == AlterKind.DELETE_INDEX

    @property
    def targets_index(self) -> bool:
        return self.kind in (AlterKind.RENAME_INDEX, AlterKind.DELETE_INDEX)

    def __str__(self) -> str:
        words = self.kind.upper().replace("_", " ")
        if self.target:
            return f"{words} {self.source} TO {self.target}"
        return f"{words} {self.source}"


@dataclass(eq=False)
class Entity:
    """A model backed by one table."""

    short_name: str
    namespace: str
    table_name: str
    full_name: str = ""
    index: int = -1
    fields: list[Field] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    commands: list[AlterCommand] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.namespace = normalize_namespace(self.namespace)
        if not self.full_name:
            self.full_name = self.namespace + self.short_name

    def is_named(self, name: str) -> bool:
        """Match by short name or fully qualified name."""
        if name == self.short_name or name == self.full_name:
            return True
        return "\\" in name and "\\" + name.lstrip("\\") == self.full_name

    def add_field(self, new_field: Field, prepend: bool = False) -> None:
        new_field.owner = self.index
        if prepend:
            self.fields.insert(0, new_field)
        else:
            self.fields.append(new_field)

    def add_method(self, method: Method) -> None:
        method.owner = self.index
        self.methods.append(method)

    def add_command(self, command: AlterCommand) -> None:
        command.owner = self.index
        self.commands.append(command)

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def get_field(self, name: str) -> Field:
        """Get a field by name.

        Raises:
            FieldNotFoundError: If the entity has no such field
        """
        for f in self.fields:
            if f.name == name:
                return f
        raise FieldNotFoundError(name, self.short_name, self.field_names())

    def find_method(self, name: str) -> Method | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def get_method(self, name: str) -> Method:
        """Get a method by name.

        Raises:
            MethodNotFoundError: If the entity has no such method
        """
        method = self.find_method(name)
        if method is None:
            raise MethodNotFoundError(name, self.short_name)
        return method

    def find_methods_returning(self, type_name: str) -> list[Method]:
        """Methods whose return type is, or includes, `type_name`."""
        return [m for m in self.methods if m.can_return(type_name)]

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def primary_key_names(self) -> list[str]:
        return [f.name for f in self.fields if f.primary_key]

    def guarded_fields(self) -> list[Field]:
        return [f for f in self.fields if f.resolved_guarded()]


class Schema:
    """Root of the graph: namespaces, entities and the `default` policy."""

    def __init__(self, config: CompilerConfig | None = None) -> None:
        self.config = config or CompilerConfig()
        self.entities: list[Entity] = []
        self.namespaces: dict[str, Namespace] = {}
        self.default_nullable = True
        self.default_guarded = False

    # === Namespaces ===

    def add_namespace(self, namespace: Namespace) -> None:
        self.namespaces[namespace.name] = namespace

    def path_for_namespace(self, name: str) -> str:
        """Directory prefix registered for a namespace.

        Raises:
            NamespaceNotFoundError: If the namespace was never declared
        """
        namespace = self.namespaces.get(normalize_namespace(name))
        if namespace is None:
            raise NamespaceNotFoundError(name, list(self.namespaces))
        return namespace.path

    # === Defaults ===

    def update_defaults(self, tags: list[str]) -> None:
        """Apply a `default` line; affects declarations that follow it."""
        if "null" in tags or "nullable" in tags:
            self.default_nullable = True
        if "not null" in tags or "not nullable" in tags:
            self.default_nullable = False
        if "guarded" in tags:
            self.default_guarded = True
        if "unguarded" in tags:
            self.default_guarded = False

    # === Entities ===

    def add_entity(self, entity: Entity) -> Entity:
        """Register an entity and assign its arena index.

        Raises:
            DuplicateTableError: If another entity already uses the table name
        """
        existing = self.entity_by_table(entity.table_name)
        if existing is not None:
            raise DuplicateTableError(entity.table_name, existing.short_name, entity.short_name)
        entity.index = len(self.entities)
        self.entities.append(entity)
        return entity

    def owner_of(self, item: Field | Method | AlterCommand) -> Entity:
        """Entity a field, method or command belongs to."""
        return self.entities[item.owner]

    def get_entity(self, name: str) -> Entity | None:
        """Find an entity by short or fully qualified name.

        Returns:
            The entity, or None if nothing matches

        Raises:
            MultipleModelsWithSameShortNameError: If the short name is ambiguous
        """
        matches = [e for e in self.entities if e.is_named(name)]
        if len(matches) > 1:
            raise MultipleModelsWithSameShortNameError(name, [e.full_name for e in matches])
        return matches[0] if matches else None

    def require_entity(self, name: str) -> Entity:
        """Like get_entity() but raises EntityNotFoundError when missing."""
        entity = self.get_entity(name)
        if entity is None:
            raise EntityNotFoundError(name, [e.short_name for e in self.entities])
        return entity

    def entity_by_table(self, table_name: str) -> Entity | None:
        for entity in self.entities:
            if entity.table_name == table_name:
                return entity
        return None

    def label(self, method: Method) -> str:
        """Human readable method reference, e.g. `User.roles()`."""
        return f"{self.owner_of(method).short_name}.{method.name}()"

