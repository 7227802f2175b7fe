"""
Extraction configuration.

The vocabulary used to recognise optional fields and unions is a property of
the documentation corpus, so it lives here instead of in the extractor.
Values come from defaults, then ``LITSCHEMA_*`` environment variables (a
``.env`` file is honoured), then an optional JSON file.
"""

import json
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from litschema.errors import ConfigError

DEFAULT_SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"

ENV_PREFIX = "LITSCHEMA_"


class ExtractionConfig(BaseModel):
    """Marker vocabulary and knobs for the extractor and synthesizer."""

    optional_markers: List[str] = Field(
        default_factory=lambda: ["(optional)", "optional.", "defaults to"],
        description=(
            "Case-insensitive phrases that mark a field optional when found in its description; "
            "matched as whole phrases and ignored right after 'not' or 'never'"
        )
    )
    optional_type_prefixes: List[str] = Field(
        default_factory=lambda: ["optional"],
        description="Words that mark a field optional when they prefix its type annotation"
    )
    union_markers: List[str] = Field(
        default_factory=lambda: ["one of", "either"],
        description="Phrases that introduce the variants of a union"
    )
    max_lookahead: int = Field(
        6,
        ge=1,
        description="Blocks inspected after a heading before falling back to a string scalar"
    )
    root_anchor: str = Field("pipeline", description="Anchor of the root type")
    schema_draft: str = Field(DEFAULT_SCHEMA_DRAFT, description="Value of the $schema keyword")

    @field_validator("optional_markers", "optional_type_prefixes", "union_markers")
    @classmethod
    def _normalise_markers(cls, value: List[str]) -> List[str]:
        markers = [m.strip().lower() for m in value if m.strip()]
        if not markers:
            raise ValueError("marker list must not be empty")
        return markers

    @classmethod
    def load(cls, config_file: Optional[Path] = None, **overrides) -> "ExtractionConfig":
        """
        Build a configuration from environment and an optional JSON file.

        Args:
            config_file: JSON object whose keys are ExtractionConfig fields
            **overrides: Explicit values (e.g. from CLI options); None is ignored

        Returns:
            Validated ExtractionConfig

        Raises:
            ConfigError: If the file is unreadable or a value is invalid
        """
        load_dotenv(find_dotenv(usecwd=True))

        values = _values_from_env()

        if config_file is not None:
            try:
                file_values = json.loads(Path(config_file).read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"Cannot read config file {config_file}: {e}") from e
            if not isinstance(file_values, dict):
                raise ConfigError(f"Config file {config_file} must contain a JSON object")
            values.update(file_values)

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValidationError as e:
            errors = []
            for error in e.errors():
                loc = '.'.join(str(l) for l in error['loc'])
                errors.append(f"{loc}: {error['msg']}")
            raise ConfigError("Invalid configuration: " + "; ".join(errors)) from e


def _values_from_env() -> dict:
    values = {}

    for field_name in ("optional_markers", "optional_type_prefixes", "union_markers"):
        raw = os.getenv(ENV_PREFIX + field_name.upper())
        if raw:
            values[field_name] = [item.strip() for item in raw.split(",")]

    for field_name in ("max_lookahead", "root_anchor", "schema_draft"):
        raw = os.getenv(ENV_PREFIX + field_name.upper())
        if raw:
            values[field_name] = raw.strip()

    return values
