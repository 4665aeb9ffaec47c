"""Grammar matchers for the schema DSL.

Each matcher takes one logical line and returns a typed declaration, or None
when the line is not that construct. A line that is recognised but carries
invalid content (an unknown tag, a bad join) raises a GrammarError instead.

Top-level lines are tried as default, namespace and entity; nested lines as
field, method and alter command, in that order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from schemaforge.core.types import AlterKind, CompilerConfig
from schemaforge.exceptions import (
    NamespacePathError,
    PolymorphicArrayError,
    UnknownTagError,
)
from schemaforge.schema.joins import JoinExpression, parse_join
from schemaforge.schema.models import normalize_namespace, normalize_path

# === Declarations ===


@dataclass(frozen=True)
class NamespaceDecl:
    name: str
    path: str


@dataclass(frozen=True)
class DefaultDecl:
    tags: tuple[str, ...]


@dataclass(frozen=True)
class EntityDecl:
    name: str
    table: str | None = None

    @property
    def is_qualified(self) -> bool:
        return "\\" in self.name

    def split_name(self) -> tuple[str | None, str]:
        """Split `\\Ns\\Model` into (`\\Ns`, `Model`); unqualified names give None."""
        match = _QUALIFIED_RE.match(self.name)
        if match is None:
            return None, self.name
        return match.group("namespace"), match.group("short")


@dataclass(frozen=True)
class FieldDecl:
    name: str
    field_type: str
    param1: int | str | None = None
    param2: int | None = None
    primary_key: bool = False
    nullable: bool | None = None
    guarded: bool | None = None
    default: str | None = None
    # None stands for a default-named index, resolved once the table is known
    indexes: tuple[str | None, ...] = ()
    uniques: tuple[str | None, ...] = ()


@dataclass(frozen=True)
class MethodDecl:
    name: str
    via: str | None = None
    return_type: str | None = None
    inverse_of: str | None = None
    join: JoinExpression | None = None
    alias: str | None = None
    pivot_with_timestamps: bool = False
    nullable: bool | None = None


@dataclass(frozen=True)
class AlterDecl:
    kind: AlterKind
    source: str
    target: str | None = None


Declaration = NamespaceDecl | DefaultDecl | EntityDecl | FieldDecl | MethodDecl | AlterDecl


# === Line patterns ===

_DEFAULT_RE = re.compile(r"^default (?P<tags>.*)$", re.IGNORECASE)
_NAMESPACE_RE = re.compile(r"^namespace\s+(?P<name>\S*)(?:\s+(?P<path>\S*)\s*)?$")
_ENTITY_RE = re.compile(r"^(?P<name>[A-Za-z0-9\\-]+)(?:\s*\((?P<table>[A-Za-z0-9_]+)\))?$")
_QUALIFIED_RE = re.compile(r"^(?P<namespace>.*?)\\(?P<short>[^\\]*?)$")

_FIELD_RE = re.compile(
    r"^(?P<name>[A-Za-z0-9_]+):\s*"
    r"(?:enum\((?P<enum_param>.*?)\)"
    r"|(?P<numbered_type>[A-Za-z0-9_]+)\((?P<param1>\d+)(?:,\s*(?P<param2>\d+))?\)"
    r"|(?P<type>[A-Za-z0-9_]+))"
    r"(?:\s+(?P<tags>.*))?$"
)

_METHOD_RE = re.compile(
    r"^(?P<name>[A-Za-z0-9_]+)\(\)"
    r"(?:\s*via\s*(?P<via>[A-Za-z0-9_.()]+))?"
    r"(?::\s+(?P<return_type>[A-Za-z0-9|]+(?:\[\])?)(?:\s+(?P<tags>.*))?)?\s*$"
)

_ALTER_PATTERNS = (
    (AlterKind.RENAME_INDEX, re.compile(r"^RENAME\s+INDEX\s+([0-9A-Za-z_]+)\s+TO\s+([0-9A-Za-z_]+)\s*$")),
    (AlterKind.DELETE_INDEX, re.compile(r"^DELETE\s+INDEX\s+([0-9A-Za-z_]+)\s*$")),
    (AlterKind.RENAME_FIELD, re.compile(r"^RENAME\s+FIELD\s+([0-9A-Za-z_]+)\s+TO\s+([0-9A-Za-z_]+)\s*$")),
    (AlterKind.DELETE_FIELD, re.compile(r"^DELETE\s+FIELD\s+([0-9A-Za-z_]+)\s*$")),
)

_TAG_SPLIT_RE = re.compile(r",\s*")
_DEFAULT_TAGS = ("null", "nullable", "not null", "not nullable", "guarded", "unguarded")

# field tags
_INDEX_RE = re.compile(r"^Index$")
_UNIQUE_RE = re.compile(r"^Unique$")
_NAMED_INDEX_RE = re.compile(r"^Index\((?P<name>[A-Za-z0-9_]+)\)$")
_NAMED_UNIQUE_RE = re.compile(r"^Unique\((?P<name>[A-Za-z0-9_]+)\)$")
_DEFAULT_VALUE_RE = re.compile(r'^Default\((?P<value>".*?"|false|true|[0-9]+|[0-9]+\.[0-9]+)\)$')

# method tags
_JOIN_RE = re.compile(r"^Join\((?P<join>.*?)\)$")
_INVERSE_RE = re.compile(r"^<-\s+(?P<inverse_of>[A-Za-z0-9._]+\(\))$")
_ALIAS_RE = re.compile(r"""^As\((?:"(?P<double>[^"]+)"|'(?P<single>[^']+)')\)$""")
_PIVOT_TIMESTAMPS_RE = re.compile(r"^PivotWithTimestamps$", re.IGNORECASE)

_NOT_NULL = "NotNull"
_NULLABLE = ("Null", "Nullable")


def split_tags(tags: str | None) -> list[str]:
    """Split a tag list on commas, dropping empty entries."""
    if not tags:
        return []
    return [t.strip() for t in _TAG_SPLIT_RE.split(tags) if t.strip()]


# === Top-level matchers ===


def match_default(line: str) -> DefaultDecl | None:
    """Match `default <tags>`, e.g. `default not null, guarded`.

    Raises:
        UnknownTagError: If a tag is not a known default policy
    """
    match = _DEFAULT_RE.match(line)
    if match is None:
        return None
    tags = tuple(t.lower() for t in re.split(r"\s*,\s*", match.group("tags").strip()) if t)
    for tag in tags:
        if tag not in _DEFAULT_TAGS:
            raise UnknownTagError("default", line, tag)
    return DefaultDecl(tags)


def match_namespace(line: str, config: CompilerConfig | None = None) -> NamespaceDecl | None:
    """Match `namespace <name> [<path>]`.

    Without a path, namespaces below the default one get a path derived from
    the default path (`\\App\\Models` becomes `app/Models/`).

    Raises:
        NamespacePathError: If the path is omitted and cannot be derived
    """
    match = _NAMESPACE_RE.match(line)
    if match is None:
        return None

    config = config or CompilerConfig()
    name = normalize_namespace(match.group("name"))
    path = match.group("path")
    if path:
        return NamespaceDecl(name, normalize_path(path))

    root = normalize_namespace(config.default_namespace)
    if not name.startswith(root):
        raise NamespacePathError(match.group("name"))
    relative = name[len(root):].replace("\\", "/")
    return NamespaceDecl(name, normalize_path(config.default_namespace_path + relative))


def match_entity(line: str) -> EntityDecl | None:
    """Match `Name` or `Name (table_name)`."""
    match = _ENTITY_RE.match(line)
    if match is None:
        return None
    return EntityDecl(match.group("name"), match.group("table"))


# === Nested matchers ===


def match_field(line: str, owner: str = "") -> FieldDecl | None:
    """Match a field line such as `email: string(120) Unique, NotNull`.

    Args:
        line: Logical line text
        owner: Short name of the entity, used in error messages

    Raises:
        UnknownTagError: If a tag is not a known field tag
    """
    match = _FIELD_RE.match(line)
    if match is None:
        return None

    name = match.group("name")
    param1: int | str | None = None
    param2: int | None = None
    if match.group("enum_param") is not None:
        field_type = "enum"
        param1 = match.group("enum_param")
    elif match.group("numbered_type") is not None:
        field_type = match.group("numbered_type")
        param1 = int(match.group("param1"))
        if match.group("param2") is not None:
            param2 = int(match.group("param2"))
    else:
        field_type = match.group("type")

    primary_key = False
    nullable: bool | None = None
    guarded: bool | None = None
    default: str | None = None
    indexes: list[str | None] = []
    uniques: list[str | None] = []

    for tag in split_tags(match.group("tags")):
        if _INDEX_RE.match(tag):
            indexes.append(None)
        elif _UNIQUE_RE.match(tag):
            uniques.append(None)
        elif m := _NAMED_INDEX_RE.match(tag):
            indexes.append(m.group("name"))
        elif m := _NAMED_UNIQUE_RE.match(tag):
            uniques.append(m.group("name"))
        elif tag == "PrimaryKey":
            primary_key = True
        elif tag == _NOT_NULL:
            nullable = False
        elif tag in _NULLABLE:
            nullable = True
        elif tag == "Guarded":
            guarded = True
        elif m := _DEFAULT_VALUE_RE.match(tag):
            default = m.group("value")
        else:
            raise UnknownTagError("field", f"{owner}.{name}", tag)

    return FieldDecl(
        name=name,
        field_type=field_type,
        param1=param1,
        param2=param2,
        primary_key=primary_key,
        nullable=nullable,
        guarded=guarded,
        default=default,
        indexes=tuple(indexes),
        uniques=tuple(uniques),
    )


def match_method(line: str, owner: str = "") -> MethodDecl | None:
    """Match a method line such as `roles(): Role[] <- Role.users(), As("grant")`.

    Args:
        line: Logical line text
        owner: Short name of the entity, used in error messages

    Raises:
        PolymorphicArrayError: If a union return type carries `[]`
        UnknownTagError: If a tag is not a known method tag
        JoinSyntaxError: If a Join tag holds a malformed expression
    """
    match = _METHOD_RE.match(line)
    if match is None:
        return None

    name = match.group("name")
    label = f"{owner}.{name}()"
    return_type = match.group("return_type")
    if return_type and "|" in return_type and return_type.endswith("[]"):
        raise PolymorphicArrayError(label, return_type)

    inverse_of: str | None = None
    join: JoinExpression | None = None
    alias: str | None = None
    pivot_with_timestamps = False
    nullable: bool | None = None

    for tag in split_tags(match.group("tags")):
        if m := _JOIN_RE.match(tag):
            join = parse_join(m.group("join"))
        elif m := _INVERSE_RE.match(tag):
            inverse_of = m.group("inverse_of")
        elif m := _ALIAS_RE.match(tag):
            alias = m.group("double") or m.group("single")
        elif _PIVOT_TIMESTAMPS_RE.match(tag):
            pivot_with_timestamps = True
        elif tag == _NOT_NULL:
            nullable = False
        elif tag in _NULLABLE:
            nullable = True
        else:
            raise UnknownTagError("method", label, tag)

    return MethodDecl(
        name=name,
        via=match.group("via"),
        return_type=return_type,
        inverse_of=inverse_of,
        join=join,
        alias=alias,
        pivot_with_timestamps=pivot_with_timestamps,
        nullable=nullable,
    )


def match_alter(line: str) -> AlterDecl | None:
    """Match `RENAME|DELETE FIELD|INDEX source [TO target]`."""
    for kind, pattern in _ALTER_PATTERNS:
        match = pattern.match(line)
        if match is not None:
            target = match.group(2) if pattern.groups > 1 else None
            return AlterDecl(kind, match.group(1), target)
    return None


def match_top_level(line: str, config: CompilerConfig | None = None) -> Declaration | None:
    """Try the top-level matchers in order."""
    return match_default(line) or match_namespace(line, config) or match_entity(line)


def match_nested(line: str, owner: str = "") -> Declaration | None:
    """Try the nested matchers in order."""
    return match_field(line, owner) or match_method(line, owner) or match_alter(line)
