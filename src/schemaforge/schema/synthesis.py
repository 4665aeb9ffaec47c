"""Implicit field synthesis.

After parsing, every entity gets the columns its declarations imply but do not
spell out: an `id` primary key, foreign keys named by `via` or a join, the
`<name>_id`/`<name>_type` pair of a polymorphic belongs-to and the foreign key
of every belongs-to. Fields are only added when missing, so running synthesis
twice changes nothing.
"""

from __future__ import annotations

import logging

from schemaforge.schema.models import Entity, Field, Schema
from schemaforge.schema.resolver import RelationResolver

logger = logging.getLogger(__name__)


class ImplicitSynthesizer:
    """Adds implied fields to the entities of a schema."""

    def __init__(self, schema: Schema) -> None:
        self.schema = schema
        # the graph changes under us, so nothing may be cached
        self.resolver = RelationResolver(schema, memoize=False)

    def run(self) -> None:
        for entity in self.schema.entities:
            self.synthesize_entity(entity)

    def synthesize_entity(self, entity: Entity) -> None:
        config = self.schema.config
        if not entity.primary_key_names():
            self._add(entity, "id", config.primary_key_type, primary_key=True, prepend=True)

        for method in entity.methods:
            if self.resolver.via_creates_field(method):
                self._add(entity, method.via, config.foreign_key_type)  # type: ignore[arg-type]

            join_field = self.resolver.join_creates_field(method)
            if join_field:
                self._add(entity, join_field, config.foreign_key_type)

            if method.is_polymorphic:
                self._add(entity, f"{method.name}_id", config.foreign_key_type)
                self._add(entity, f"{method.name}_type", config.morph_type_type)

            if self.resolver.is_belongs_to(method):
                self._add(
                    entity, self.resolver.belongs_to_field_name(method), config.foreign_key_type
                )

    def _add(
        self,
        entity: Entity,
        name: str,
        field_type: str,
        primary_key: bool = False,
        prepend: bool = False,
    ) -> None:
        if entity.has_field(name):
            return
        new_field = Field(
            name=name,
            field_type=field_type,
            primary_key=primary_key,
            nullable=False if primary_key else None,
            implicit=True,
            default_nullable=self.schema.default_nullable,
            default_guarded=self.schema.default_guarded,
        )
        entity.add_field(new_field, prepend=prepend)
        logger.debug(f"Added implicit field {entity.short_name}.{name} ({field_type})")


def synthesize(schema: Schema) -> Schema:
    """Add implied fields to every entity, in entity order."""
    ImplicitSynthesizer(schema).run()
    return schema
