"""Relationship resolution.

A method never states its relation kind. The resolver derives it from the
method line, the fields of both entities and the method on the other side
(the inverse), following the same conventions a reader of the DSL would:

    User
        phone(): Phone          # User has_one Phone (Phone holds user_id)
    Phone
        user(): User            # Phone belongs_to User
        user_id: integer

The resolver is read-only with respect to the schema. Results are memoized
per instance unless memoize=False, which the synthesizer needs while it is
still adding fields to the graph.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from schemaforge.core.inflection import pluralize, singularize, snake, studly
from schemaforge.core.types import RelationKind
from schemaforge.exceptions import (
    AmbiguousOneToOneError,
    EntityNotFoundError,
    InverseCycleError,
    InverseFormatError,
    InverseMethodNotFoundError,
    MethodNotFoundError,
    MissingForeignKeyError,
    ResolutionError,
)
from schemaforge.schema.joins import JoinExpression
from schemaforge.schema.models import Entity, Method, Schema

logger = logging.getLogger(__name__)

# inverse lookups that may fail without making the caller's question invalid
_INVERSE_LOOKUP_ERRORS = (
    InverseMethodNotFoundError,
    MethodNotFoundError,
    EntityNotFoundError,
    InverseFormatError,
)


def split_inverse_pointer(inverse_of: str) -> tuple[str, str]:
    """Split `Model.method()` into ("Model", "method").

    Raises:
        InverseFormatError: If the pointer is not exactly two dotted parts
    """
    parts = inverse_of.replace("()", "").split(".")
    if len(parts) != 2 or not all(parts):
        raise InverseFormatError(inverse_of)
    return parts[0], parts[1]


class RelationResolver:
    """Answers relationship questions about methods of one schema."""

    def __init__(self, schema: Schema, memoize: bool = True) -> None:
        self.schema = schema
        self.memoize = memoize
        self._kinds: dict[int, RelationKind] = {}
        self._inverses: dict[int, Method] = {}
        self._active: list[tuple[str, int]] = []
        self._active_labels: list[str] = []

    @contextmanager
    def _guard(self, operation: str, method: Method) -> Iterator[None]:
        """Track in-flight lookups; re-entering one means the pointers loop."""
        key = (operation, id(method))
        label = self.label(method)
        if key in self._active:
            raise InverseCycleError([*self._active_labels, label])
        self._active.append(key)
        self._active_labels.append(label)
        try:
            yield
        finally:
            self._active.pop()
            self._active_labels.pop()

    # === Basic facts ===

    def owner(self, method: Method) -> Entity:
        return self.schema.owner_of(method)

    def label(self, method: Method) -> str:
        return self.schema.label(method)

    def self_referencing(self, method: Method) -> bool:
        """True for methods returning their own entity (Human.boss(): Human)."""
        return method.return_type_single == self.owner(method).short_name

    def via_entity(self, method: Method) -> Entity | None:
        """Entity named by `via`, if `via` names one."""
        if not method.via:
            return None
        return self.schema.get_entity(method.via)

    def via_creates_field(self, method: Method) -> bool:
        """`via` names a plain column (not an entity, not a method)."""
        if not method.via:
            return False
        if self.via_entity(method) is not None:
            return False
        return not method.via.endswith("()")

    # === Joins ===

    def effective_join(self, method: Method) -> JoinExpression | None:
        """The method's own join, or else the one declared on its inverse."""
        if method.join is not None:
            return method.join
        try:
            inverse = self.inverse(method)
        except _INVERSE_LOOKUP_ERRORS:
            return None
        return inverse.join

    def has_pivot_join(self, method: Method) -> bool:
        join = self.effective_join(method)
        return join is not None and join.is_pivot

    def own_field_in_join(self, method: Method) -> str | None:
        join = self.effective_join(method)
        if join is None:
            return None
        return join.field_in(self.owner(method).short_name)

    def join_creates_field(self, method: Method) -> str | None:
        """Own-side join field that is not a primary key, if any."""
        field_name = self.own_field_in_join(method)
        if field_name and field_name not in self.owner(method).primary_key_names():
            return field_name
        return None

    def field_join_creates_in(self, method: Method, short_name: str) -> str | None:
        """Non-`id` field the join's first condition references on `short_name`."""
        join = self.effective_join(method)
        if join is None:
            return None
        cond = join.first
        if cond.left_table == short_name and cond.left_field != "id":
            return cond.left_field
        if cond.right_table == short_name and cond.right_field != "id":
            return cond.right_field
        return None

    # === Foreign keys ===

    def belongs_to_field_name(self, method: Method) -> str:
        """Column holding the foreign key of a belongs-to.

        In order: the `via` column, the field the inverse's join puts in our
        table, then the `<singular name>_id` convention.
        """
        with self._guard("belongs_to_field_name", method):
            if self.via_creates_field(method):
                return method.via  # type: ignore[return-value]
            try:
                field_name = self.inverse_creates_field_in_owner(method)
            except InverseMethodNotFoundError:
                field_name = None
            if field_name:
                return field_name
            return singularize(method.name) + "_id"

    def inverse_creates_field_in_owner(self, method: Method) -> str | None:
        return self.field_join_creates_in(self.inverse(method), self.owner(method).short_name)

    def is_belongs_to_field_default(self, method: Method) -> bool:
        """True when the foreign key follows the `<method>_id` convention."""
        return self.belongs_to_field_name(method) == f"{method.name}_id"

    def belongs_to_field_exists(self, method: Method) -> bool:
        return self.owner(method).has_field(self.belongs_to_field_name(method))

    # === Inverse ===

    def guess_inverse_entity_name(self, method: Method) -> str:
        if method.via and self.via_entity(method) is not None:
            return method.via
        if self.schema.get_entity(method.return_type_single) is not None:
            return method.return_type_single
        return singularize(studly(method.name))

    def inverse(self, method: Method) -> Method:
        """The method on the other side of the relationship.

        Raises:
            InverseMethodNotFoundError: If no inverse can be deduced
            InverseFormatError: If an explicit `<-` pointer is malformed
            EntityNotFoundError: If an explicit pointer names an unknown entity
            MethodNotFoundError: If an explicit pointer names an unknown method
        """
        key = id(method)
        if self.memoize and key in self._inverses:
            return self._inverses[key]
        with self._guard("inverse", method):
            inverse = self._find_inverse(method)
        if self.memoize:
            self._inverses[key] = inverse
        return inverse

    def _find_inverse(self, method: Method) -> Method:
        if method.inverse_of:
            entity_name, method_name = split_inverse_pointer(method.inverse_of)
            return self.schema.require_entity(entity_name).get_method(method_name)

        own_short = self.owner(method).short_name
        other_name = self.guess_inverse_entity_name(method)
        other = self.schema.get_entity(other_name)
        if other is None:
            raise InverseMethodNotFoundError(
                self.label(method),
                f"we tried to guess it was in the model `{other_name}`, "
                "but the model was not found",
            )

        own_snake = snake(own_short)
        plural_name = pluralize(own_snake)
        singular_name = singularize(own_snake)
        for candidate in (plural_name, singular_name):
            found = other.find_method(candidate)
            if found is not None:
                return found

        for type_name in (own_short, own_short + "[]"):
            candidates = other.find_methods_returning(type_name)
            if len(candidates) == 1:
                return candidates[0]

        raise InverseMethodNotFoundError(
            self.label(method),
            f"we tried to look for methods `{other.short_name}.{singular_name}()` and "
            f"`{other.short_name}.{plural_name}()`, but neither was there.",
        )

    # === Relation kind ===

    def kind(self, method: Method) -> RelationKind:
        """Relation kind of a method.

        Raises:
            MissingForeignKeyError: If a single-valued method has no foreign key
                and no inverse to infer it from
            AmbiguousOneToOneError: If neither side of a one-to-one holds the key
            InverseMethodNotFoundError: If a many-valued method has no inverse
        """
        key = id(method)
        if self.memoize and key in self._kinds:
            return self._kinds[key]
        with self._guard("kind", method):
            kind = self._resolve_kind(method)
        logger.debug(f"{self.label(method)} resolves to {kind}")
        if self.memoize:
            self._kinds[key] = kind
        return kind

    def _resolve_kind(self, method: Method) -> RelationKind:
        if method.is_polymorphic:
            return RelationKind.MORPH_TO
        if self.has_pivot_join(method):
            return RelationKind.BELONGS_TO_MANY
        if method.returns_one:
            return self._resolve_single(method)
        return self._resolve_many(method)

    def _resolve_single(self, method: Method) -> RelationKind:
        owner = self.owner(method)
        if owner.has_field(self.belongs_to_field_name(method)):
            return RelationKind.BELONGS_TO
        if self.via_creates_field(method) or self.join_creates_field(method):
            return RelationKind.BELONGS_TO

        try:
            inverse = self.inverse(method)
        except InverseMethodNotFoundError as e:
            raise MissingForeignKeyError(
                self.label(method),
                owner.short_name,
                method.name,
                self.belongs_to_field_name(method),
                f"{studly(method.name)}.{pluralize(snake(owner.short_name))}()",
            ) from e

        if self.field_join_creates_in(inverse, owner.short_name):
            return RelationKind.BELONGS_TO
        if (
            self.via_creates_field(inverse)
            or self.join_creates_field(inverse)
            or self.belongs_to_field_exists(inverse)
        ):
            return RelationKind.HAS_ONE
        if inverse.returns_many:
            return RelationKind.BELONGS_TO
        raise AmbiguousOneToOneError(owner.short_name, self.owner(inverse).short_name)

    def _resolve_many(self, method: Method) -> RelationKind:
        if self.self_referencing(method):
            return RelationKind.HAS_MANY

        inverse = self.inverse(method)
        if inverse.returns_many:
            return RelationKind.BELONGS_TO_MANY

        through = self.via_entity(method)
        if through is not None:
            if inverse.is_polymorphic:
                return RelationKind.MORPH_TO_MANY
            candidates = through.find_methods_returning(method.return_type_single)
            if len(candidates) == 1 and candidates[0].is_polymorphic:
                return RelationKind.MORPHED_BY_MANY
            return RelationKind.HAS_MANY_THROUGH
        if inverse.is_polymorphic:
            return RelationKind.MORPH_MANY
        return RelationKind.HAS_MANY

    def is_belongs_to(self, method: Method) -> bool:
        return method.returns_one and self.kind(method) == RelationKind.BELONGS_TO

    def is_many_to_many(self, method: Method) -> bool:
        return self.kind(method) == RelationKind.BELONGS_TO_MANY

    # === Related entity ===

    def related_entity(self, method: Method) -> Entity | None:
        """Entity a non-polymorphic method returns."""
        if method.is_polymorphic:
            return None
        entity = self.schema.get_entity(method.return_type_single)
        if entity is not None:
            return entity
        try:
            return self.owner(self.inverse(method))
        except _INVERSE_LOOKUP_ERRORS:
            return None

    # === Pivot tables ===

    def is_many_to_many_first(self, method: Method) -> bool:
        """The side whose entity sorts first owns the implicit pivot table."""
        return self.owner(method).short_name < self.owner(self.inverse(method)).short_name

    def _pivot_table_from_join(self, join: JoinExpression) -> str:
        entity = self.schema.get_entity(join.pivot_table)
        return entity.table_name if entity is not None else join.pivot_table

    def pivot_table_name(self, method: Method) -> str:
        """Pivot table of a many-to-many.

        Taken from a two-condition join on either side, otherwise the two
        singular table names in alphabetical order (role_user).
        """
        join = self.effective_join(method)
        if join is not None and join.is_pivot:
            return self._pivot_table_from_join(join)

        inverse = self.inverse(method)
        join = self.effective_join(inverse)
        if join is not None and join.is_pivot:
            return self._pivot_table_from_join(join)

        names = sorted(
            [
                singularize(self.owner(method).table_name),
                singularize(self.owner(inverse).table_name),
            ]
        )
        return "_".join(names)

    def explicit_pivot_entity(self, method: Method) -> Entity | None:
        """Declared entity whose table is the pivot table, if any."""
        return self.schema.entity_by_table(self.pivot_table_name(method))

    def our_key_in_pivot(self, method: Method) -> str:
        """Pivot column this method's side of a many-to-many contributes.

        Raises:
            ResolutionError: If a pivot join does not mention the owner
        """
        join = self.effective_join(method)
        if join is None or not join.is_pivot:
            return singularize(method.name) + "_id"

        owner = self.owner(method)
        names = [owner.short_name, owner.table_name]
        by_table = self.schema.entity_by_table(owner.short_name)
        if by_table is not None:
            names.append(by_table.short_name)
        for pair in join.pairs():
            if pair.table1 in names:
                return pair.field2
        raise ResolutionError(
            f"Trying to parse '{join}' I needed to find part that matches table or "
            f"model {owner.short_name}, but couldn't",
            {"join": join.raw, "entity_name": owner.short_name},
        )

    def pivot_columns(self, method: Method) -> list[tuple[str, bool]]:
        """(column, nullable) pairs of an implicit pivot table."""
        inverse = self.inverse(method)
        return [
            (self.our_key_in_pivot(method), bool(method.nullable)),
            (self.our_key_in_pivot(inverse), bool(inverse.nullable)),
        ]

    def is_pivot_entity(self, entity: Entity) -> bool:
        """True if a many-to-many in the schema uses this entity's table as pivot."""
        for other in self.schema.entities:
            for method in other.methods:
                try:
                    if not self.is_many_to_many(method):
                        continue
                    if self.pivot_table_name(method) == entity.table_name:
                        return True
                except _INVERSE_LOOKUP_ERRORS:
                    continue
        return False

    # === Has-many-through ===

    def through_method(self, method: Method) -> Method | None:
        """Method on the `via` entity that returns what this method returns.

        Raises:
            ResolutionError: If zero or several methods qualify
        """
        through = self.via_entity(method)
        if through is None:
            return None
        candidates = through.find_methods_returning(method.return_type)
        if len(candidates) == 1:
            return candidates[0]
        if not candidates:
            raise ResolutionError(
                f"There is no method returning `{method.return_type}` in `{through.short_name}`",
                {"method": self.label(method), "through": through.short_name},
            )
        raise ResolutionError(
            f"There are several methods returning `{method.return_type}` in "
            f"`{through.short_name}`, keep only one of them",
            {"method": self.label(method), "through": through.short_name},
        )
