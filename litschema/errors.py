"""
Exceptions raised by the litschema pipeline.

Only conditions that abort a run are exceptions. Corpus defects that the
pipeline tolerates (duplicate anchors, unresolved references) are recorded
as data on the corpus index instead; see ``litschema.schemas``.
"""

from typing import Optional


class LitSchemaError(Exception):
    """Base class for all litschema failures."""


class ConfigError(LitSchemaError):
    """Invalid extraction configuration."""


class MalformedMarkup(LitSchemaError):
    """A structural line in a lit document could not be parsed."""

    def __init__(self, path: str, line: int, expected: str, found: Optional[str] = None):
        self.path = path
        self.line = line
        self.expected = expected
        self.found = found

        message = f"{path}:{line}: expected {expected}"
        if found is not None:
            message += f", found {found!r}"
        super().__init__(message)


class ExtractionError(LitSchemaError):
    """Schema extraction could not complete a required inference."""

    def __init__(self, anchor: str, reason: str):
        self.anchor = anchor
        self.reason = reason
        super().__init__(f"{anchor}: {reason}")
