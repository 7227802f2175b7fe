"""
JSON Schema synthesis.

Turns a SchemaGraph into a JSON-Schema-shaped dict:

    {
      "$schema": "<draft>",
      "$defs": {"<name>": <definition>, ...},
      "$ref": "#/$defs/<root>"
    }

Every TypeNode becomes one entry in ``$defs`` and every relationship is a
``$ref``; nothing is inlined, so cyclic types need no special handling.
Key order follows the graph (and, inside objects, the source definition
list), which keeps output byte-identical across runs.
"""

from typing import Any, Dict, Optional
import logging

from litschema.config import DEFAULT_SCHEMA_DRAFT
from litschema.errors import ExtractionError
from litschema.schemas import (
    ArrayType,
    ObjectType,
    ScalarType,
    SchemaGraph,
    TypeNode,
    UnionType,
)

logger = logging.getLogger(__name__)


def definition_ref(name: str) -> str:
    """JSON Pointer reference to a named definition."""
    escaped = name.replace("~", "~0").replace("/", "~1")
    return f"#/$defs/{escaped}"


class SchemaSynthesizer:
    """Convert a SchemaGraph into a schema document."""

    def __init__(self, schema_draft: str = DEFAULT_SCHEMA_DRAFT):
        """
        Initialize synthesizer.

        Args:
            schema_draft: Value of the top-level $schema keyword
        """
        self.schema_draft = schema_draft

    def synthesize(self, graph: SchemaGraph) -> Dict[str, Any]:
        """
        Build the schema document.

        Args:
            graph: Complete SchemaGraph

        Returns:
            Schema document as a plain dict, ready for serialization

        Raises:
            ExtractionError: If the root or any reference is missing from the graph
        """
        if graph.root not in graph.types:
            raise ExtractionError(graph.root, "root type is not part of the schema graph")

        dangling = graph.dangling_references()
        if dangling:
            owner, missing = dangling[0]
            raise ExtractionError(owner, f"reference to undefined type '{missing}'")

        definitions = {name: self._definition(node) for name, node in graph.types.items()}

        logger.debug(f"Synthesized {len(definitions)} definitions, root {graph.root}")

        return {
            "$schema": self.schema_draft,
            "$defs": definitions,
            "$ref": definition_ref(graph.root),
        }

    def _definition(self, node: TypeNode) -> Dict[str, Any]:
        if isinstance(node, ObjectType):
            definition: Dict[str, Any] = {"type": "object"}
            _describe(definition, node.description)
            definition["properties"] = {
                field.name: _describe({"$ref": definition_ref(field.type_ref)}, field.description)
                for field in node.fields
            }
            definition["required"] = node.required
            return definition

        if isinstance(node, UnionType):
            definition = {}
            _describe(definition, node.description)
            definition["oneOf"] = [{"$ref": definition_ref(v.type_ref)} for v in node.variants]
            return definition

        if isinstance(node, ArrayType):
            definition = {"type": "array"}
            _describe(definition, node.description)
            definition["items"] = {"$ref": definition_ref(node.items)}
            return definition

        if isinstance(node, ScalarType):
            definition = {"type": node.scalar}
            _describe(definition, node.description)
            if node.enum is not None:
                definition["enum"] = list(node.enum)
            return definition

        raise TypeError(f"Unknown TypeNode: {node!r}")


def _describe(definition: Dict[str, Any], description: Optional[str]) -> Dict[str, Any]:
    if description:
        definition["description"] = description
    return definition


def synthesize_schema(graph: SchemaGraph, schema_draft: str = DEFAULT_SCHEMA_DRAFT) -> Dict[str, Any]:
    """Convenience function to synthesize a schema document."""
    return SchemaSynthesizer(schema_draft).synthesize(graph)
