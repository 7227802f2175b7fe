"""
Inline markup handling.

Finds cross-reference spans and turns marked-up prose into the plain text
that ends up in schema descriptions.
"""

import re
from typing import List, Optional

from litschema.schemas import Block, CodeBlock, CrossReference, DefinitionList, Heading, Paragraph

# (display text, #anchor); display text may wrap across lines
CROSS_REFERENCE_PATTERN = re.compile(
    r'\(\s*([^(),]+?)\s*,\s*#([A-Za-z0-9_.-]+)\s*\)'
)

STRONG_PATTERN = re.compile(r'(\*\*|__)(?=\S)(.+?)(?<=\S)\1')
EMPHASIS_STAR_PATTERN = re.compile(r'\*(?=\S)([^*\n]+?)(?<=\S)\*')
EMPHASIS_UNDERSCORE_PATTERN = re.compile(
    r'(?<![A-Za-z0-9_])_(?=\S)([^_\n]+?)(?<=\S)_(?![A-Za-z0-9_])'
)
CODE_SPAN_PATTERN = re.compile(r'`([^`\n]+)`')
WHITESPACE_PATTERN = re.compile(r'\s+')


def display_text(raw: str) -> str:
    """Display text of a cross-reference, with wrapped whitespace collapsed."""
    return WHITESPACE_PATTERN.sub(' ', raw).strip()


def find_references(text: str, first_line: int) -> List[CrossReference]:
    """
    Find every cross-reference span in text.

    Args:
        text: Prose, possibly spanning several lines
        first_line: Source line of the first line of text

    Returns:
        CrossReference spans in order of appearance
    """
    references = []
    for match in CROSS_REFERENCE_PATTERN.finditer(text):
        references.append(CrossReference(
            line=first_line + text.count('\n', 0, match.start()),
            text=display_text(match.group(1)),
            target=match.group(2),
        ))
    return references


def leading_reference(text: str, line: int) -> Optional[CrossReference]:
    """Return the cross-reference that text starts with, if any."""
    match = CROSS_REFERENCE_PATTERN.match(text)
    if not match:
        return None
    return CrossReference(line=line, text=display_text(match.group(1)), target=match.group(2))


def plain_text(text: str) -> str:
    """
    Strip inline markup and collapse whitespace.

    Cross-references become their display text; emphasis and code spans
    lose their delimiters.
    """
    text = CROSS_REFERENCE_PATTERN.sub(lambda m: m.group(1), text)
    text = STRONG_PATTERN.sub(lambda m: m.group(2), text)
    text = EMPHASIS_STAR_PATTERN.sub(lambda m: m.group(1), text)
    text = EMPHASIS_UNDERSCORE_PATTERN.sub(lambda m: m.group(1), text)
    text = CODE_SPAN_PATTERN.sub(lambda m: m.group(1), text)
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def blocks_to_text(blocks: List[Block]) -> str:
    """
    Render description blocks as plain text.

    Code blocks are skipped. Paragraphs are separated by a blank line.
    """
    parts = []

    for block in blocks:
        if isinstance(block, CodeBlock):
            continue

        if isinstance(block, Paragraph):
            parts.append(plain_text(block.text))
        elif isinstance(block, CrossReference):
            parts.append(block.text)
        elif isinstance(block, Heading):
            parts.append(plain_text(block.title))
        elif isinstance(block, DefinitionList):
            lines = []
            for entry in block.entries:
                term = plain_text(entry.term)
                body = blocks_to_text(entry.description)
                lines.append(f"{term}: {body}" if body else term)
            parts.append("\n".join(lines))

    return "\n\n".join(p for p in parts if p)
