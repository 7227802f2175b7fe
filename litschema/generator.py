"""
litschema generator - main orchestration logic.

Runs the four stages over a materialized corpus:
1. Parse every document into blocks
2. Index anchors across the corpus
3. Extract the type graph
4. Synthesize the JSON Schema document

The run is all-or-nothing: any MalformedMarkup or ExtractionError aborts it.
"""

from concurrent.futures import ThreadPoolExecutor
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import logging

from litschema.config import ExtractionConfig
from litschema.corpus import build_index
from litschema.errors import MalformedMarkup
from litschema.extraction import extract_schema_graph
from litschema.markup import parse_document
from litschema.schemas import CorpusIndex, Document, GenerationResult, SchemaGraph
from litschema.synthesis import synthesize_schema
from litschema.utils import scan_documentation

logger = logging.getLogger(__name__)


class LitSchemaGenerator:
    """
    Main generator for litschema.

    Documents may be parsed on a thread pool; every later stage sees them
    in the order they were supplied.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None, workers: int = 1):
        """
        Initialize generator.

        Args:
            config: Extraction configuration (default: ExtractionConfig())
            workers: Parallel parse workers; 1 parses sequentially
        """
        self.config = config or ExtractionConfig()
        self.workers = max(1, workers)

    def parse_corpus(self, corpus: Iterable[Tuple[str, str]]) -> List[Document]:
        """
        Parse every document, collecting errors per document.

        Args:
            corpus: ``(relative path, text)`` pairs in a stable order

        Returns:
            Parsed documents in input order

        Raises:
            MalformedMarkup: The first parse error, after all are logged
        """
        corpus = list(corpus)

        if self.workers > 1 and len(corpus) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outcomes = list(pool.map(_parse_one, corpus))
        else:
            outcomes = [_parse_one(item) for item in corpus]

        errors = [o for o in outcomes if isinstance(o, MalformedMarkup)]
        if errors:
            for error in errors:
                logger.error(f"Malformed markup: {error}")
            raise errors[0]

        return outcomes

    def build_graph(self, corpus: Iterable[Tuple[str, str]]) -> Tuple[CorpusIndex, SchemaGraph]:
        """Parse, index and extract without synthesizing."""
        documents = self.parse_corpus(corpus)
        index = build_index(documents)
        self._report_index(index)
        return index, extract_schema_graph(index, self.config)

    def generate(self, corpus: Iterable[Tuple[str, str]]) -> GenerationResult:
        """
        Run the complete pipeline.

        Args:
            corpus: ``(relative path, text)`` pairs in a stable order

        Returns:
            GenerationResult carrying the schema document and statistics
        """
        corpus = list(corpus)

        logger.info(f"[1/4] Parsing {len(corpus)} documents...")
        documents = self.parse_corpus(corpus)

        logger.info("[2/4] Indexing anchors...")
        index = build_index(documents)
        self._report_index(index)

        logger.info("[3/4] Extracting types...")
        graph = extract_schema_graph(index, self.config)

        logger.info("[4/4] Synthesizing schema...")
        schema_document = synthesize_schema(graph, self.config.schema_draft)

        types_by_kind = Counter(node.kind for node in graph.types.values())

        result = GenerationResult(
            schema_document=schema_document,
            root=graph.root,
            total_documents=len(documents),
            total_anchors=len(index.definitions),
            types_by_kind=dict(sorted(types_by_kind.items())),
            duplicates=index.duplicates,
            unresolved=index.unresolved,
            diagnostics=graph.diagnostics,
            timestamp=datetime.now().isoformat(),
        )

        logger.info(
            f"Generated {len(graph.types)} definitions from {result.total_anchors} anchors "
            f"(root: {graph.root})"
        )
        return result

    def generate_from_directory(
        self,
        docs_path: Path,
        include_patterns: Optional[List[str]] = None,
        exclude_patterns: Optional[List[str]] = None
    ) -> GenerationResult:
        """Scan a documentation directory and run the pipeline over it."""
        corpus = scan_documentation(Path(docs_path), include_patterns, exclude_patterns)
        return self.generate(corpus)

    @staticmethod
    def _report_index(index: CorpusIndex):
        for duplicate in index.duplicates:
            logger.warning(
                f"Duplicate anchor '{duplicate.anchor}' at {duplicate.path}:{duplicate.line} ignored "
                f"(first defined at {duplicate.first_path}:{duplicate.first_line})"
            )
        for ref in index.unresolved:
            logger.warning(f"Unresolved reference to '{ref.target}' at {ref.path}:{ref.line}")


def _parse_one(item: Tuple[str, str]):
    path, text = item
    try:
        document = parse_document(path, text)
    except MalformedMarkup as e:
        return e
    logger.debug(f"Parsed {path}: {len(document.blocks)} blocks")
    return document


def generate_schema(
    corpus: Iterable[Tuple[str, str]],
    config: Optional[ExtractionConfig] = None,
    workers: int = 1
) -> GenerationResult:
    """
    Convenience function to run the pipeline over a materialized corpus.

    Example:
        >>> result = generate_schema([("pipeline.lit", text)])
        >>> result.schema_document["$ref"]
        '#/$defs/pipeline'
    """
    return LitSchemaGenerator(config, workers).generate(corpus)
