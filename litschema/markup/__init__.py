"""Markup parsing for lit documentation files."""

from .parser import MarkupParser, parse_document
from .inline import blocks_to_text, display_text, find_references, plain_text

__all__ = [
    "MarkupParser",
    "parse_document",
    "blocks_to_text",
    "display_text",
    "find_references",
    "plain_text",
]
