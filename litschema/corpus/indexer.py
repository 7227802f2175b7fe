"""
Corpus indexer.

Merges parsed documents into one anchor index:
- definitions: anchor -> where it is defined (first registration wins)
- references: anchor -> every place that refers to it
- unresolved: references to anchors that are never defined
- duplicates: later definitions of an anchor that were ignored

Anchors come from headings with ``{#anchor}`` and from definition terms that
start with a cross-reference. Documents are visited in the order given, so
callers control tie-breaking on duplicates by sorting their input.
"""

from typing import Dict, List
import logging

from litschema.markup.inline import find_references
from litschema.schemas import (
    AnchorSite,
    Block,
    CorpusIndex,
    CrossReference,
    DefinitionList,
    Document,
    DuplicateAnchor,
    Heading,
    Paragraph,
    ReferenceSite,
    UnresolvedReference,
)

logger = logging.getLogger(__name__)


class CorpusIndexer:
    """Build a CorpusIndex from an ordered list of documents."""

    def __init__(self):
        self._definitions: Dict[str, AnchorSite] = {}
        self._references: Dict[str, List[ReferenceSite]] = {}
        self._reference_order: List[ReferenceSite] = []
        self._duplicates: List[DuplicateAnchor] = []

    def build(self, documents: List[Document]) -> CorpusIndex:
        """
        Index all documents.

        Args:
            documents: Parsed documents in a stable order

        Returns:
            Frozen CorpusIndex
        """
        for document in documents:
            self._walk(document.path, document.blocks)

        unresolved = [
            UnresolvedReference(**site.model_dump())
            for site in self._reference_order
            if site.target not in self._definitions
        ]

        logger.debug(
            f"Indexed {len(documents)} documents: {len(self._definitions)} anchors, "
            f"{len(self._reference_order)} references, {len(unresolved)} unresolved, "
            f"{len(self._duplicates)} duplicates"
        )

        return CorpusIndex(
            documents=list(documents),
            definitions=dict(self._definitions),
            references={k: list(v) for k, v in self._references.items()},
            unresolved=unresolved,
            duplicates=list(self._duplicates),
        )

    def _walk(self, path: str, blocks: List[Block]):
        for position, block in enumerate(blocks):
            if isinstance(block, Heading):
                if block.anchor:
                    self._register(AnchorSite(
                        anchor=block.anchor,
                        path=path,
                        line=block.line,
                        block=block,
                        siblings=blocks,
                        position=position,
                    ))

            elif isinstance(block, Paragraph):
                for ref in block.references:
                    self._add_reference(path, ref)

            elif isinstance(block, CrossReference):
                self._add_reference(path, block)

            elif isinstance(block, DefinitionList):
                for entry in block.entries:
                    if entry.term_reference is not None:
                        self._register(AnchorSite(
                            anchor=entry.term_reference.target,
                            path=path,
                            line=entry.line,
                            block=block,
                            entry=entry,
                            siblings=blocks,
                            position=position,
                        ))

                    # The leading reference is included here: a term anchor
                    # is also a reference to itself.
                    for ref in find_references(entry.term, entry.line):
                        self._add_reference(path, ref)

                    self._walk(path, entry.description)

    def _register(self, site: AnchorSite):
        first = self._definitions.get(site.anchor)
        if first is not None:
            self._duplicates.append(DuplicateAnchor(
                anchor=site.anchor,
                path=site.path,
                line=site.line,
                first_path=first.path,
                first_line=first.line,
            ))
            return

        logger.debug(f"Registered anchor {site.anchor} at {site.path}:{site.line}")
        self._definitions[site.anchor] = site

    def _add_reference(self, path: str, ref: CrossReference):
        site = ReferenceSite(target=ref.target, path=path, line=ref.line, text=ref.text)
        self._references.setdefault(ref.target, []).append(site)
        self._reference_order.append(site)


def build_index(documents: List[Document]) -> CorpusIndex:
    """Convenience function to index an ordered list of documents."""
    return CorpusIndexer().build(documents)
