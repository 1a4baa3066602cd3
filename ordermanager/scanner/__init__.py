"""Scanner module for grouping source files."""

from .filesystem import (
    FileEntry,
    ScanError,
    derive_group_key,
    list_file_entries,
    list_regular_files,
)
from .scanner import Scanner

__all__ = [
    "Scanner",
    "FileEntry",
    "ScanError",
    "derive_group_key",
    "list_file_entries",
    "list_regular_files",
]
