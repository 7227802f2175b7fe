"""
litschema - JSON Schema generation from lit documentation.

Converts a corpus of interlinked lit documents that describe a
pipeline-configuration format into one JSON Schema that validates files of
that format and carries the documentation prose as descriptions.

Main Components:
- markup: line-oriented parser producing typed blocks
- corpus: anchor index over all documents
- extraction: convention rules that build the type graph
- synthesis: type graph to JSON Schema ($defs / $ref / oneOf)
- generator: orchestrates the stages over a materialized corpus

Usage:
    from litschema import LitSchemaGenerator
    from pathlib import Path

    generator = LitSchemaGenerator()
    result = generator.generate_from_directory(Path("docs/lit"))
    schema = result.schema_document
"""

__version__ = "0.1.0"

from .config import ExtractionConfig
from .errors import ConfigError, ExtractionError, LitSchemaError, MalformedMarkup
from .schemas import (
    # Markup
    Block,
    CodeBlock,
    CrossReference,
    DefinitionEntry,
    DefinitionList,
    Document,
    Heading,
    Paragraph,

    # Corpus index
    AnchorSite,
    CorpusIndex,
    DuplicateAnchor,
    ReferenceSite,
    UnresolvedReference,

    # Type graph
    ArrayType,
    ObjectField,
    ObjectType,
    ScalarType,
    SchemaGraph,
    TypeNode,
    UnionType,
    UnionVariant,

    # Output
    GenerationResult,
)

from .generator import LitSchemaGenerator, generate_schema

__all__ = [
    # Main generator
    "LitSchemaGenerator",
    "generate_schema",
    "ExtractionConfig",

    # Errors
    "LitSchemaError",
    "ConfigError",
    "MalformedMarkup",
    "ExtractionError",

    # Markup schemas
    "Block",
    "CodeBlock",
    "CrossReference",
    "DefinitionEntry",
    "DefinitionList",
    "Document",
    "Heading",
    "Paragraph",

    # Corpus index schemas
    "AnchorSite",
    "CorpusIndex",
    "DuplicateAnchor",
    "ReferenceSite",
    "UnresolvedReference",

    # Type graph schemas
    "ArrayType",
    "ObjectField",
    "ObjectType",
    "ScalarType",
    "SchemaGraph",
    "TypeNode",
    "UnionType",
    "UnionVariant",

    # Output
    "GenerationResult",
]
