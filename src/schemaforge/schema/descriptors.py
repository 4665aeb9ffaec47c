"""Relation descriptors.

Turns each resolved method into a RelationDescriptor: the kind plus every key,
table and morph name an emitter needs to render the relation for a target
framework. Nothing here generates code.
"""

from __future__ import annotations

from schemaforge.core.types import RelationDescriptor, RelationKind
from schemaforge.exceptions import UnsupportedRelationError
from schemaforge.schema.models import Entity, Method, Schema
from schemaforge.schema.resolver import RelationResolver


def single_primary_key(entity: Entity, reason: str) -> str:
    """Name of the entity's only primary key column.

    Raises:
        UnsupportedRelationError: If there is no primary key or more than one
    """
    keys = entity.primary_key_names()
    if not keys:
        raise UnsupportedRelationError(
            f"Model `{entity.short_name}` has no primary key, but {reason}",
            {"entity_name": entity.short_name},
        )
    if len(keys) > 1:
        raise UnsupportedRelationError(
            f"Model `{entity.short_name}` has a complex primary key ({','.join(keys)}), {reason}",
            {"entity_name": entity.short_name, "primary_key": keys},
        )
    return keys[0]


class RelationDescriber:
    """Builds RelationDescriptor objects for methods of a resolved schema."""

    def __init__(self, resolver: RelationResolver) -> None:
        self.resolver = resolver
        self.schema = resolver.schema

    def describe(self, method: Method) -> RelationDescriptor:
        """Describe one method.

        Raises:
            ResolutionError: If the relation cannot be resolved or described
        """
        kind = self.resolver.kind(method)
        base = RelationDescriptor(
            entity=self.resolver.owner(method).full_name, method=method.name, kind=kind
        )

        match kind:
            case RelationKind.BELONGS_TO:
                details = self._belongs_to(method)
            case RelationKind.HAS_ONE | RelationKind.HAS_MANY:
                details = self._has_one_or_many(method, kind)
            case RelationKind.BELONGS_TO_MANY:
                details = self._belongs_to_many(method)
            case RelationKind.HAS_MANY_THROUGH:
                details = self._has_many_through(method)
            case RelationKind.MORPH_TO:
                details = self._morph_columns(method.name)
            case RelationKind.MORPH_MANY:
                details = self._morph_many(method)
            case RelationKind.MORPH_TO_MANY:
                details = self._morph_to_many(method)
            case RelationKind.MORPHED_BY_MANY:
                details = self._morphed_by_many(method)

        return base.model_copy(update=details)

    def describe_all(self) -> list[RelationDescriptor]:
        return [self.describe(m) for entity in self.schema.entities for m in entity.methods]

    # === Per kind ===

    def _reason(self, kind: str, method: Method, entity: Entity) -> str:
        return (
            f"{kind} {self.resolver.label(method)} requires simple one-field primary key "
            f"on {entity.short_name}"
        )

    def _require_related(self, method: Method) -> Entity:
        related = self.resolver.related_entity(method)
        if related is None:
            raise UnsupportedRelationError(
                f"Cannot tell which model `{self.resolver.label(method)}` returns, "
                f"declare model `{method.return_type_single}`",
                {"method": self.resolver.label(method)},
            )
        return related

    def _belongs_to(self, method: Method) -> dict:
        related = self._require_related(method)
        return {
            "related": related.full_name,
            "foreign_key": self.resolver.belongs_to_field_name(method),
            "owner_key": single_primary_key(related, self._reason("belongsTo", method, related)),
        }

    def _has_one_or_many(self, method: Method, kind: RelationKind) -> dict:
        owner = self.resolver.owner(method)
        inverse = self.resolver.inverse(method)
        return {
            "related": self.resolver.owner(inverse).full_name,
            "foreign_key": self.resolver.belongs_to_field_name(inverse),
            "local_key": single_primary_key(owner, self._reason(kind, method, owner)),
        }

    def _belongs_to_many(self, method: Method) -> dict:
        owner = self.resolver.owner(method)
        inverse = self.resolver.inverse(method)
        related = self.resolver.owner(inverse)
        pivot_entity = self.resolver.explicit_pivot_entity(method)
        return {
            "related": related.full_name,
            "pivot_table": self.resolver.pivot_table_name(method),
            "foreign_pivot_key": self.resolver.our_key_in_pivot(inverse),
            "related_pivot_key": self.resolver.our_key_in_pivot(method),
            "local_key": single_primary_key(owner, self._reason("Many to Many", method, owner)),
            "owner_key": single_primary_key(
                related, self._reason("Many to Many", inverse, related)
            ),
            "pivot_entity": pivot_entity.full_name if pivot_entity else None,
            "pivot_fields": pivot_entity.field_names() if pivot_entity else [],
            "alias": method.alias,
            "with_timestamps": method.pivot_with_timestamps,
        }

    def _has_many_through(self, method: Method) -> dict:
        # Country.posts() via User: inverse User.country(), through User.posts()
        owner = self.resolver.owner(method)
        inverse = self.resolver.inverse(method)
        through_method = self.resolver.through_method(method)
        through = self.resolver.owner(through_method)  # type: ignore[arg-type]
        end_method = self.resolver.inverse(through_method)  # type: ignore[arg-type]
        return {
            "related": self.resolver.owner(end_method).full_name,
            "through_entity": through.full_name,
            "first_key": self.resolver.belongs_to_field_name(inverse),
            "second_key": self.resolver.belongs_to_field_name(end_method),
            "local_key": single_primary_key(owner, self._reason("Many to Many", method, owner)),
            "second_local_key": single_primary_key(
                through, self._reason("Many to Many", method, through)
            ),
        }

    def _morph_columns(self, morph_name: str) -> dict:
        return {
            "morph_name": morph_name,
            "morph_type": f"{morph_name}_type",
            "morph_id": f"{morph_name}_id",
        }

    def _morph_many(self, method: Method) -> dict:
        # Post.comments(): inverse Comment.commentable()
        owner = self.resolver.owner(method)
        inverse = self.resolver.inverse(method)
        return {
            "related": self.resolver.owner(inverse).full_name,
            "local_key": single_primary_key(owner, self._reason("MorphMany", method, owner)),
            **self._morph_columns(inverse.name),
        }

    def _morph_to_many(self, method: Method) -> dict:
        # Post.tags() via Taggable: inverse Taggable.taggable()
        related = self._require_related(method)
        inverse = self.resolver.inverse(method)
        return {
            "related": related.full_name,
            "pivot_table": self.resolver.owner(inverse).table_name,
            **self._morph_columns(inverse.name),
        }

    def _morphed_by_many(self, method: Method) -> dict:
        # Tag.posts() via Taggable: inverse Taggable.tag(), morph method Taggable.taggable()
        related = self._require_related(method)
        through = self.resolver.owner(self.resolver.inverse(method))
        if through.primary_key_names() != ["id"]:
            raise UnsupportedRelationError(
                "Currently, we don't support polymorphic many-to-many with custom Primary Key "
                f"(see `{self.resolver.label(method)}` and model `{through.short_name}`)",
                {"method": self.resolver.label(method), "entity_name": through.short_name},
            )
        morph_method = through.find_methods_returning(method.return_type_single)[0]
        return {
            "related": related.full_name,
            "pivot_table": through.table_name,
            **self._morph_columns(morph_method.name),
        }


def describe_relations(schema: Schema) -> list[RelationDescriptor]:
    """Descriptors for every method of a parsed schema, in declaration order."""
    return RelationDescriber(RelationResolver(schema)).describe_all()
