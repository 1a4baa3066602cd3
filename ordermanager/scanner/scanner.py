"""Source directory scanner."""

import logging
from pathlib import Path

from ordermanager.catalog import GroupCatalog
from ordermanager.scanner.filesystem import list_file_entries

logger = logging.getLogger(__name__)


class Scanner:
    """Groups the regular files of a directory by their derived key."""

    def scan(self, source_dir: Path) -> GroupCatalog:
        """Build a fresh catalog of ``source_dir``.

        Raises ScanError if the directory cannot be listed; nothing is
        returned in that case so callers keep their previous catalog.
        """
        catalog = GroupCatalog.from_entries(list_file_entries(source_dir))

        logger.debug(
            "Scanned %s: %d files in %d groups",
            source_dir,
            catalog.file_count,
            len(catalog),
        )
        return catalog
