"""JSON Schema synthesis from a SchemaGraph."""

from .synthesizer import SchemaSynthesizer, definition_ref, synthesize_schema

__all__ = [
    "SchemaSynthesizer",
    "definition_ref",
    "synthesize_schema",
]
