"""Filename grouping and directory listing utilities."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

GROUP_SUFFIX = "_u"


class ScanError(Exception):
    """Raised when a directory cannot be listed."""


@dataclass(frozen=True)
class FileEntry:
    path: Path
    group_key: str

    @property
    def name(self) -> str:
        return self.path.name


def derive_group_key(filename: str) -> str:
    """Derive the group key shared by all files of one logical unit.

    The last ``.``-delimited extension is removed, then a trailing ``_u``
    suffix in any case. ``report_u.PDF`` and ``report.pdf`` both give
    ``report``. Never fails; the key may be empty (``.hidden``, ``_u``).
    """
    dot_index = filename.rfind(".")
    base = filename if dot_index == -1 else filename[:dot_index]

    if base.lower().endswith(GROUP_SUFFIX):
        base = base[: -len(GROUP_SUFFIX)]

    return base


def list_regular_files(directory: Path) -> list[Path]:
    """List regular files directly inside ``directory``, sorted by name.

    Sub-directories and special files are ignored. Raises ScanError if the
    directory itself cannot be listed.
    """
    files: list[Path] = []

    try:
        with os.scandir(directory) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if _is_regular_file(entry):
                    files.append(Path(entry.path))
    except OSError as e:
        raise ScanError(f"Cannot list directory {directory}: {e}") from e

    return files


def list_file_entries(directory: Path) -> list[FileEntry]:
    return [
        FileEntry(path=path, group_key=derive_group_key(path.name))
        for path in list_regular_files(directory)
    ]


def _is_regular_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except PermissionError:
        logger.warning("Permission denied: %s", entry.path)
    except FileNotFoundError:
        logger.warning("File disappeared during scan: %s", entry.path)
    except OSError as e:
        logger.error("Error processing %s: %s", entry.path, e)
    return False
