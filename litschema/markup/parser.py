"""
Line-oriented parser for lit documentation files.

Turns the raw text of one document into an ordered list of blocks:
- Headings: ``### Title {#anchor}``
- Definition lists: ``- term`` lines followed by indented descriptions
- Fenced code blocks (content kept verbatim)
- Cross-reference blocks: a paragraph that is a single ``(text, #anchor)``
- Paragraphs: everything else

Comments (``{- ... -}``) are removed before block parsing. The parser is
lenient: prose it does not recognise becomes a paragraph. Only structural
lines that start a construct and then break it raise MalformedMarkup.
"""

import re
import textwrap
from typing import List, Optional, Tuple

from litschema.errors import MalformedMarkup
from litschema.markup.inline import (
    CROSS_REFERENCE_PATTERN,
    display_text,
    find_references,
    leading_reference,
)
from litschema.schemas import (
    Block,
    CodeBlock,
    CrossReference,
    DefinitionEntry,
    DefinitionList,
    Document,
    Heading,
    Paragraph,
)


class MarkupParser:
    """
    Parse one lit document into blocks.

    Parsing is pure: the same text always yields the same Document.
    """

    HEADING_PATTERN = re.compile(r'^(#{1,6})\s+(.*?)\s*$')

    ANCHOR_SUFFIX_PATTERN = re.compile(r'\s*\{#([^}]*)\}$')

    ANCHOR_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')

    TERM_PATTERN = re.compile(r'^[-*]\s+(\S.*?)\s*$')

    FENCE_PATTERN = re.compile(r'^(`{3,}|~{3,})\s*([^`\s]*)\s*$')

    COMMENT_OPEN = "{-"
    COMMENT_CLOSE = "-}"

    def __init__(self, path: str):
        """
        Initialize parser.

        Args:
            path: Document path, used in error locations
        """
        self.path = path

    def parse(self, text: str) -> Document:
        """
        Parse a whole document.

        Args:
            text: Raw document text

        Returns:
            Document with top-level blocks

        Raises:
            MalformedMarkup: On an unterminated comment or code fence, or a
                malformed anchor or anchor-bearing term
        """
        lines = self._strip_comments(text.splitlines())
        blocks = self._parse_blocks(lines, first_line=1)
        return Document(path=self.path, blocks=blocks)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def _strip_comments(self, lines: List[str]) -> List[str]:
        """Blank out comment spans, keeping line numbering intact."""
        result = []
        in_comment_since: Optional[int] = None
        fence: Optional[str] = None

        for idx, line in enumerate(lines):
            if in_comment_since is None:
                fence_match = self.FENCE_PATTERN.match(line.strip())
                if fence is not None:
                    if fence_match and line.strip().startswith(fence) and not fence_match.group(2):
                        fence = None
                    result.append(line)
                    continue
                if fence_match:
                    fence = fence_match.group(1)
                    result.append(line)
                    continue

            kept = []
            pos = 0
            while pos < len(line):
                if in_comment_since is not None:
                    end = line.find(self.COMMENT_CLOSE, pos)
                    if end == -1:
                        pos = len(line)
                    else:
                        in_comment_since = None
                        pos = end + len(self.COMMENT_CLOSE)
                else:
                    start = line.find(self.COMMENT_OPEN, pos)
                    if start == -1:
                        kept.append(line[pos:])
                        pos = len(line)
                    else:
                        kept.append(line[pos:start])
                        in_comment_since = idx + 1
                        pos = start + len(self.COMMENT_OPEN)

            stripped = "".join(kept)
            result.append(stripped if stripped.strip() else "")

        if in_comment_since is not None:
            raise MalformedMarkup(self.path, in_comment_since, "comment terminator '-}'")

        return result

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _parse_blocks(self, lines: List[str], first_line: int) -> List[Block]:
        blocks: List[Block] = []
        entries: List[DefinitionEntry] = []
        i = 0
        n = len(lines)

        def flush_entries():
            if entries:
                blocks.append(DefinitionList(line=entries[0].line, entries=list(entries)))
                entries.clear()

        while i < n:
            line = lines[i]
            line_no = first_line + i

            if not line.strip():
                i += 1
                continue

            if self._is_term_start(lines, i):
                entry, i = self._parse_entry(lines, i, first_line)
                entries.append(entry)
                continue

            flush_entries()

            fence_match = self.FENCE_PATTERN.match(line)
            if fence_match:
                block, i = self._parse_code_block(lines, i, first_line, fence_match)
                blocks.append(block)
                continue

            heading_match = self.HEADING_PATTERN.match(line)
            if heading_match:
                blocks.append(self._parse_heading(heading_match, line_no))
                i += 1
                continue

            block, i = self._parse_paragraph(lines, i, first_line)
            blocks.append(block)

        flush_entries()
        return blocks

    def _parse_heading(self, match: re.Match, line_no: int) -> Heading:
        level = len(match.group(1))
        title = match.group(2)
        anchor = None

        if "{#" in title:
            suffix = self.ANCHOR_SUFFIX_PATTERN.search(title)
            if not suffix:
                raise MalformedMarkup(self.path, line_no, "'}' closing the heading anchor", title)
            anchor = suffix.group(1).strip()
            if not self.ANCHOR_PATTERN.match(anchor):
                raise MalformedMarkup(self.path, line_no, "anchor identifier", anchor)
            title = title[:suffix.start()].rstrip()

        return Heading(line=line_no, level=level, title=title, anchor=anchor)

    def _parse_code_block(
        self,
        lines: List[str],
        start: int,
        first_line: int,
        fence_match: re.Match
    ) -> Tuple[CodeBlock, int]:
        fence = fence_match.group(1)
        language = fence_match.group(2) or None

        for end in range(start + 1, len(lines)):
            candidate = lines[end].strip()
            if candidate.startswith(fence) and set(candidate) == {fence[0]}:
                content = "\n".join(lines[start + 1:end])
                return CodeBlock(line=first_line + start, language=language, content=content), end + 1

        raise MalformedMarkup(self.path, first_line + start, f"closing code fence {fence}")

    def _parse_paragraph(self, lines: List[str], start: int, first_line: int) -> Tuple[Block, int]:
        collected = []
        i = start

        while i < len(lines):
            line = lines[i]
            if not line.strip():
                break
            if i > start and (
                self.FENCE_PATTERN.match(line)
                or self.HEADING_PATTERN.match(line)
                or self._is_term_start(lines, i)
            ):
                break
            collected.append(line.strip())
            i += 1

        text = "\n".join(collected)
        line_no = first_line + start

        whole = CROSS_REFERENCE_PATTERN.fullmatch(text)
        if whole:
            return CrossReference(line=line_no, text=display_text(whole.group(1)), target=whole.group(2)), i

        return Paragraph(line=line_no, text=text, references=find_references(text, line_no)), i

    # ------------------------------------------------------------------
    # Definition lists
    # ------------------------------------------------------------------

    @staticmethod
    def _is_indented(line: str) -> bool:
        return line.startswith("  ") or line.startswith("\t")

    def _is_term_start(self, lines: List[str], i: int) -> bool:
        """A term line immediately followed by an indented description line."""
        if self._is_indented(lines[i]) or not self.TERM_PATTERN.match(lines[i]):
            return False
        return i + 1 < len(lines) and bool(lines[i + 1].strip()) and self._is_indented(lines[i + 1])

    def _parse_entry(self, lines: List[str], start: int, first_line: int) -> Tuple[DefinitionEntry, int]:
        term = self.TERM_PATTERN.match(lines[start]).group(1)
        line_no = first_line + start

        term_reference = None
        if term.startswith("("):
            term_reference = leading_reference(term, line_no)
            if term_reference is None:
                raise MalformedMarkup(self.path, line_no, "cross-reference term '(text, #anchor)'", term)

        # Description: indented lines, with blank lines allowed between them
        i = start + 1
        description_lines = []
        while i < len(lines):
            line = lines[i]
            if self._is_indented(line) and line.strip():
                description_lines.append(line)
                i += 1
            elif not line.strip():
                j = i
                while j < len(lines) and not lines[j].strip():
                    j += 1
                if j < len(lines) and self._is_indented(lines[j]):
                    description_lines.extend([""] * (j - i))
                    i = j
                else:
                    break
            else:
                break

        body = textwrap.dedent("\n".join(description_lines).expandtabs(4)).split("\n")
        description = self._parse_blocks(body, first_line=line_no + 1)

        return DefinitionEntry(
            line=line_no,
            term=term,
            term_reference=term_reference,
            description=description,
        ), i


def parse_document(path: str, text: str) -> Document:
    """
    Convenience function to parse one document.

    Args:
        path: Document path relative to the corpus root
        text: Raw document text

    Returns:
        Parsed Document

    Example:
        >>> doc = parse_document("steps.lit", "### Step {#step}")
        >>> doc.blocks[0].anchor
        'step'
    """
    return MarkupParser(path).parse(text)
