"""Type extraction: convention rules that turn an indexed corpus into a SchemaGraph."""

from .extractor import SchemaExtractor, extract_schema_graph
from .type_notation import TypeNotationError, parse_field_term, parse_type

__all__ = [
    "SchemaExtractor",
    "extract_schema_graph",
    "TypeNotationError",
    "parse_field_term",
    "parse_type",
]
