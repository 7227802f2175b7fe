"""Corpus-wide anchor index."""

from .indexer import CorpusIndexer, build_index

__all__ = [
    "CorpusIndexer",
    "build_index",
]
