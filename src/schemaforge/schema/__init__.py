"""Schema DSL parsing and relationship resolution."""

from schemaforge.schema.descriptors import RelationDescriber, describe_relations
from schemaforge.schema.models import AlterCommand, Entity, Field, Method, Namespace, Schema
from schemaforge.schema.parser import Parser, parse
from schemaforge.schema.resolver import RelationResolver
from schemaforge.schema.synthesis import ImplicitSynthesizer, synthesize

__all__ = [
    "AlterCommand",
    "Entity",
    "Field",
    "ImplicitSynthesizer",
    "Method",
    "Namespace",
    "Parser",
    "RelationDescriber",
    "RelationResolver",
    "Schema",
    "describe_relations",
    "parse",
    "synthesize",
]
