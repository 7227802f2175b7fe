"""
Utility functions for litschema.
"""

from .file_scanner import FileScanner, scan_documentation
from .schema_utils import (
    check_schema_document,
    collect_refs,
    load_config_file,
    validate_config
)

__all__ = [
    'FileScanner',
    'scan_documentation',
    'check_schema_document',
    'collect_refs',
    'load_config_file',
    'validate_config'
]
