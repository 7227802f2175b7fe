"""
Utilities for working with generated schema documents.

Provides meta-validation of a generated document and validation of
configuration files (YAML or JSON) against it.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for


def collect_refs(node: Any) -> List[str]:
    """Every ``$ref`` value in a schema fragment, in document order."""
    refs = []
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                refs.append(value)
            else:
                refs.extend(collect_refs(value))
    elif isinstance(node, list):
        for item in node:
            refs.extend(collect_refs(item))
    return refs


def _validator_class(schema: Dict[str, Any]):
    """Validator for the document's ``$schema`` draft (2020-12 when absent)."""
    return validator_for(schema, default=Draft202012Validator)


def check_schema_document(schema: Dict[str, Any]) -> List[str]:
    """
    Check that a generated document is a usable JSON Schema.

    Args:
        schema: Schema document

    Returns:
        List of problems; empty when the document is valid and every local
        ``$ref`` points at an existing definition
    """
    errors = []

    try:
        _validator_class(schema).check_schema(schema)
    except SchemaError as e:
        errors.append(f"Invalid schema: {e.message}")

    definitions = schema.get("$defs", {})
    for ref in collect_refs(schema):
        if not ref.startswith("#/$defs/"):
            continue
        name = ref[len("#/$defs/"):].replace("~1", "/").replace("~0", "~")
        if name not in definitions:
            errors.append(f"Dangling reference: {ref}")

    return errors


def load_config_file(path: Path) -> Any:
    """
    Load a configuration instance from YAML or JSON.

    JSON files are parsed with the json module; anything else as YAML.
    """
    text = Path(path).read_text(encoding="utf-8")
    if Path(path).suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def validate_config(instance: Any, schema: Dict[str, Any]) -> tuple[bool, List[str]]:
    """
    Validate a configuration instance against a generated schema.

    Args:
        instance: Parsed configuration (e.g. a pipeline YAML document)
        schema: Generated schema document

    Returns:
        Tuple of (passed, errors) where errors are "path: message" strings
        ordered by instance path
    """
    validator = _validator_class(schema)(schema)
    errors = []

    for error in sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.absolute_path]):
        loc = '.'.join(str(p) for p in error.absolute_path) or "<root>"
        errors.append(f"{loc}: {error.message}")

    return not errors, errors
