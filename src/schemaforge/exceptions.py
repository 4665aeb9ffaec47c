"""Custom exceptions for schemaforge.

All exceptions follow the same principles:
- Messages name the offending entity, method or field
- Where possible, the message spells out the exact DSL line that fixes it
- Every error carries a machine-readable context via to_dict()
"""

from __future__ import annotations

from typing import Any


class SchemaForgeError(Exception):
    """Base exception for all schemaforge errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


# === Parse Errors ===


class ParseFailure(SchemaForgeError):
    """A logical line matched no grammar rule."""

    def __init__(self, line_number: int, raw_line: str) -> None:
        line = raw_line.strip()
        message = f"Cannot parse: line {line_number}: {line}"
        super().__init__(message, {"line_number": line_number, "raw_line": line})
        self.line_number = line_number
        self.raw_line = line


class GrammarError(SchemaForgeError):
    """A line matched a grammar rule but its content is invalid."""

    pass


class PluralEntityNameError(GrammarError):
    """Entity declared with a plural short name."""

    def __init__(self, entity_name: str) -> None:
        message = f'You are using plural "{entity_name}" as model name'
        super().__init__(message, {"entity_name": entity_name})
        self.entity_name = entity_name


class JoinSyntaxError(GrammarError):
    """Join expression is malformed or has an unsupported shape."""

    def __init__(self, join: str, reason: str | None = None) -> None:
        message = reason or f"Cannot parse join: {join}"
        super().__init__(message, {"join": join})
        self.join = join


class PolymorphicArrayError(GrammarError):
    """Polymorphic union return type with a multiplicity marker."""

    def __init__(self, method: str, return_type: str) -> None:
        suggestion = "."
        if return_type.endswith("[]"):
            suggestion = (
                f", did you mean just `{return_type[:-2]}` instead of `{return_type}`?"
            )
        message = (
            f"Your `{method}` method asks for polymorphic relation with array, "
            f"I am not sure how to do it{suggestion}"
        )
        super().__init__(message, {"method": method, "return_type": return_type})
        self.method = method
        self.return_type = return_type


class UnknownTagError(GrammarError):
    """Tag on a field, method or default line is not recognised."""

    def __init__(self, kind: str, owner: str, tag: str) -> None:
        message = f"Cannot parse tag for {kind} \"{owner}\": '{tag}'"
        super().__init__(message, {"kind": kind, "owner": owner, "tag": tag})
        self.kind = kind
        self.owner = owner
        self.tag = tag


class NamespacePathError(GrammarError):
    """Namespace declared without a path that cannot be inferred."""

    def __init__(self, namespace: str) -> None:
        message = (
            f"Cannot infer what path should be for namespace {namespace}, "
            f"use form `namespace {namespace} app/Path/Path`"
        )
        super().__init__(message, {"namespace": namespace})
        self.namespace = namespace


class InverseFormatError(GrammarError):
    """Explicit inverse pointer is not in `Model.method()` form."""

    def __init__(self, inverse_of: str) -> None:
        message = (
            f"Inverse of (<-) should be in format `Model.method()`, got `{inverse_of}`"
        )
        super().__init__(message, {"inverse_of": inverse_of})
        self.inverse_of = inverse_of


# === Lookup Errors ===


class EntityNotFoundError(SchemaForgeError):
    """Entity does not exist in the schema."""

    def __init__(self, entity_name: str, available_entities: list[str] | None = None) -> None:
        available = available_entities or []
        if available:
            message = (
                f"Model '{entity_name}' not found. Available models: {', '.join(available)}"
            )
        else:
            message = f"Model '{entity_name}' not found. No models are declared."

        super().__init__(message, {"entity_name": entity_name, "available_entities": available})
        self.entity_name = entity_name
        self.available_entities = available


class MultipleModelsWithSameShortNameError(SchemaForgeError):
    """Short-name lookup matched entities in more than one namespace."""

    def __init__(self, name: str, candidates: list[str]) -> None:
        message = f"Multiple models match {name}, use fully qualified name"
        super().__init__(message, {"name": name, "candidates": candidates})
        self.name = name
        self.candidates = candidates


class MethodNotFoundError(SchemaForgeError):
    """Method does not exist on entity."""

    def __init__(self, method_name: str, entity_name: str) -> None:
        message = f'Method "{method_name}" in the model "{entity_name}" not found'
        super().__init__(message, {"method_name": method_name, "entity_name": entity_name})
        self.method_name = method_name
        self.entity_name = entity_name


class FieldNotFoundError(SchemaForgeError):
    """Field does not exist on entity."""

    def __init__(
        self, field_name: str, entity_name: str, available_fields: list[str] | None = None
    ) -> None:
        available = available_fields or []
        message = f'Field "{field_name}" in the model "{entity_name}" not found'
        if available:
            message = f"{message}. Available fields: {', '.join(available)}"

        super().__init__(
            message,
            {
                "field_name": field_name,
                "entity_name": entity_name,
                "available_fields": available,
            },
        )
        self.field_name = field_name
        self.entity_name = entity_name
        self.available_fields = available


class NamespaceNotFoundError(SchemaForgeError):
    """Namespace was never declared."""

    def __init__(self, namespace: str, available: list[str] | None = None) -> None:
        known = available or []
        message = f"Namespace {namespace} is not declared. Declared: {', '.join(known)}"
        super().__init__(message, {"namespace": namespace, "available": known})
        self.namespace = namespace


# === Resolution Errors ===


class ResolutionError(SchemaForgeError):
    """A relationship could not be resolved."""

    pass


class InverseMethodNotFoundError(ResolutionError):
    """No inverse method could be deduced for a relationship."""

    def __init__(self, method: str, hint: str) -> None:
        message = f"Cannot deduce inverse method for `{method}`, {hint}"
        super().__init__(message, {"method": method})
        self.method = method


class MissingForeignKeyError(ResolutionError):
    """Single-valued method with no field and no inverse to infer one from."""

    def __init__(
        self,
        method: str,
        entity_name: str,
        method_name: str,
        field_name: str,
        suggested_method: str,
    ) -> None:
        message = (
            f"Method `{method}` returns only one thing, so it is probably of type "
            f"`Belongs To`, which requires field `{field_name}`, but I'm not sure if I "
            f"should create it (fix: define method `{suggested_method}` "
            f"or define field in model `{entity_name}` as `{method_name}() via {field_name}` "
            f"or as `{field_name}: integer` field)"
        )
        super().__init__(
            message,
            {"method": method, "field_name": field_name, "suggested_method": suggested_method},
        )
        self.method = method
        self.field_name = field_name


class AmbiguousOneToOneError(ResolutionError):
    """Both sides of a one-to-one lack the foreign key field."""

    def __init__(self, this_entity: str, that_entity: str) -> None:
        this_lower = that_entity.lower()
        that_lower = this_entity.lower()
        message = (
            f"Model {this_entity} contains a confusing One to One definition between "
            f"`{this_entity}.{this_lower}()` and `{that_entity}.{that_lower}()`. "
            "One to one requires a field in one of these tables. "
            f"To resolve it: if {this_entity} (usually) belongs to {that_entity} - then add "
            f"`{this_lower}() via {this_lower}_id` to {this_entity}; "
            f"otherwise if {that_entity} (usually) belongs to {this_entity} - then add "
            f"`{that_lower}() via {that_lower}_id` to {that_entity}."
        )
        super().__init__(message, {"entities": [this_entity, that_entity]})
        self.this_entity = this_entity
        self.that_entity = that_entity


class UnsupportedRelationError(ResolutionError):
    """Relationship shape is valid DSL but cannot be described."""

    pass


class InverseCycleError(ResolutionError):
    """Inverse lookups looped back onto a method already being resolved."""

    def __init__(self, chain: list[str]) -> None:
        path = " -> ".join(chain)
        message = (
            f"Inverse methods form a cycle: {path}. "
            "Check the `<-` pointers, each should name the method on the other side."
        )
        super().__init__(message, {"chain": chain})
        self.chain = chain


# === Integrity Errors ===


class SchemaIntegrityError(SchemaForgeError):
    """The schema as a whole is inconsistent."""

    pass


class DuplicateTableError(SchemaIntegrityError):
    """Two entities resolve to the same table name."""

    def __init__(self, table_name: str, first_entity: str, second_entity: str) -> None:
        message = (
            f"There are two models with table_name is `{table_name}`: "
            f"{first_entity} and {second_entity}. You must have exactly 1 Model for 1 Table."
        )
        super().__init__(
            message, {"table_name": table_name, "entities": [first_entity, second_entity]}
        )
        self.table_name = table_name


class AlterCommandConflictError(SchemaIntegrityError):
    """An alter command contradicts a freshly declared field or index."""

    pass


# === Adapter Errors ===


class IntrospectionError(SchemaForgeError):
    """Failed to read the current schema from a database."""

    pass


class SnapshotError(SchemaForgeError):
    """Snapshot could not be loaded or a change could not be applied to it."""

    pass
