"""
File scanner for lit documentation directories.

Recursively finds documentation sources and materializes them as
``(relative path, text)`` pairs in lexical path order, which is the order
the rest of the pipeline relies on for reproducible output.
"""

from pathlib import Path
from typing import List, Optional, Set, Tuple
import logging

logger = logging.getLogger(__name__)


class FileScanner:
    """
    Recursively scan a documentation directory for lit files.

    Excludes hidden directories and common build/cache directories.
    """

    SUPPORTED_EXTENSIONS = {'.lit'}

    DEFAULT_EXCLUDE_DIRS = {
        'node_modules',
        '__pycache__',
        'venv',
        'build',
        'dist',
        'site',
        '_build',
    }

    def __init__(
        self,
        base_path: Path,
        extensions: Optional[Set[str]] = None,
        exclude_dirs: Optional[Set[str]] = None
    ):
        """
        Initialize the file scanner.

        Args:
            base_path: Base directory to scan
            extensions: File extensions to include (default: .lit)
            exclude_dirs: Directory names to exclude (default: common build/cache dirs)

        Raises:
            ValueError: If base_path is missing or not a directory
        """
        self.base_path = Path(base_path).resolve()
        self.extensions = extensions or self.SUPPORTED_EXTENSIONS
        self.exclude_dirs = exclude_dirs or self.DEFAULT_EXCLUDE_DIRS

        if not self.base_path.exists():
            raise ValueError(f"Base path does not exist: {self.base_path}")

        if not self.base_path.is_dir():
            raise ValueError(f"Base path is not a directory: {self.base_path}")

    def scan(
        self,
        include_patterns: Optional[List[str]] = None,
        exclude_patterns: Optional[List[str]] = None
    ) -> List[Path]:
        """
        Scan the base directory recursively.

        Args:
            include_patterns: Glob patterns (relative to base) a file must match
            exclude_patterns: Glob patterns (relative to base) that drop a file

        Returns:
            Matching files sorted by relative path
        """
        logger.info(f"Scanning documentation directory: {self.base_path}")

        files = []
        for file_path in self._walk_directory(self.base_path):
            if file_path.suffix not in self.extensions:
                continue

            relative_path = file_path.relative_to(self.base_path)

            if include_patterns and not any(relative_path.match(p) for p in include_patterns):
                continue
            if exclude_patterns and any(relative_path.match(p) for p in exclude_patterns):
                logger.debug(f"Excluded by pattern: {relative_path}")
                continue

            files.append(file_path)

        files.sort(key=lambda p: p.relative_to(self.base_path).as_posix())

        if not files:
            logger.warning("No documentation files found!")
        else:
            logger.info(f"Found {len(files)} documentation files")

        return files

    def _walk_directory(self, directory: Path):
        """
        Recursively walk directory, yielding files while respecting exclusions.

        Args:
            directory: Directory to walk

        Yields:
            Path objects for files found
        """
        try:
            for item in sorted(directory.iterdir()):
                if item.name.startswith('.'):
                    continue

                if item.is_dir():
                    if item.name in self.exclude_dirs:
                        logger.debug(f"Skipping excluded directory: {item.name}")
                        continue
                    yield from self._walk_directory(item)

                elif item.is_file():
                    yield item

        except PermissionError:
            logger.warning(f"Permission denied accessing: {directory}")

    def read_corpus(self, files: List[Path]) -> List[Tuple[str, str]]:
        """
        Read files as ``(relative posix path, text)`` pairs, keeping order.

        Args:
            files: Files under base_path, typically from scan()

        Returns:
            Materialized corpus
        """
        corpus = []
        for file_path in files:
            relative = file_path.resolve().relative_to(self.base_path).as_posix()
            corpus.append((relative, file_path.read_text(encoding='utf-8')))
        return corpus


def scan_documentation(
    docs_path: Path,
    include_patterns: Optional[List[str]] = None,
    exclude_patterns: Optional[List[str]] = None
) -> List[Tuple[str, str]]:
    """
    Convenience function to scan a directory and read every lit file.

    Args:
        docs_path: Base documentation directory
        include_patterns: Optional glob patterns to include
        exclude_patterns: Optional glob patterns to exclude

    Returns:
        ``(relative path, text)`` pairs sorted by path

    Example:
        >>> corpus = scan_documentation(Path("docs/lit"))
        >>> steps_only = scan_documentation(
        ...     Path("docs/lit"),
        ...     include_patterns=["steps/*.lit"]
        ... )
    """
    scanner = FileScanner(docs_path)
    return scanner.read_corpus(scanner.scan(include_patterns, exclude_patterns))
