"""Archive, clear and copy sequence for a selected group."""

import errno
import logging
import os
import shutil
from collections.abc import Iterator
from pathlib import Path

from ordermanager.scanner.filesystem import ScanError, derive_group_key, list_regular_files
from ordermanager.transfer.models import TransferOutcome, TransferReport, TransferStep

logger = logging.getLogger(__name__)


class TransferCoordinator:
    """Rotates the target directory and fills it with one group from the source.

    Every step is best-effort: a failure on one file is recorded and the
    remaining files are still attempted. Nothing is rolled back.
    """

    def __init__(self, source_dir: Path, target_dir: Path, archive_dir: Path):
        self.source_dir = source_dir
        self.target_dir = target_dir
        self.archive_dir = archive_dir

    def transfer(self, selected_key: str) -> TransferReport:
        report = TransferReport(selected_key=selected_key)

        # Runs even if nothing in Source matches selected_key.
        self._archive_target(report)
        self._clear_target(report)
        self._move_group(selected_key, report)

        logger.info(
            "Transfer of '%s': %d archived, %d moved, %d failed",
            selected_key,
            len(report.archived),
            len(report.moved),
            len(report.failed),
        )
        return report

    def _archive_target(self, report: TransferReport) -> None:
        for path in self._walk_target(TransferStep.ARCHIVE, report):
            destination = self.archive_dir / path.name
            self._move(TransferStep.ARCHIVE, path, destination, report)

    def _clear_target(self, report: TransferReport) -> None:
        for path in self._walk_target(TransferStep.CLEAR, report):
            try:
                path.unlink()
            except OSError as e:
                logger.error("Error deleting %s: %s", path, e)
                report.record(TransferOutcome(TransferStep.CLEAR, path, error=str(e)))
                continue
            logger.debug("Deleted %s", path)
            report.record(TransferOutcome(TransferStep.CLEAR, path))

    def _move_group(self, selected_key: str, report: TransferReport) -> None:
        try:
            candidates = list_regular_files(self.source_dir)
        except ScanError as e:
            logger.error("%s", e)
            report.record(TransferOutcome(TransferStep.COPY, self.source_dir, error=str(e)))
            return

        for path in candidates:
            if derive_group_key(path.name) != selected_key:
                continue
            self._move(TransferStep.COPY, path, self.target_dir / path.name, report)

    def _walk_target(self, step: TransferStep, report: TransferReport) -> Iterator[Path]:
        """Yield regular files anywhere below the target directory."""

        def on_error(error: OSError) -> None:
            location = Path(error.filename) if error.filename else self.target_dir
            logger.error("Error walking %s: %s", location, error)
            report.record(TransferOutcome(step, location, error=str(error)))

        for root, _dirs, files in os.walk(self.target_dir, onerror=on_error):
            for name in sorted(files):
                path = Path(root) / name
                if path.is_file():
                    yield path

    def _move(
        self,
        step: TransferStep,
        source: Path,
        destination: Path,
        report: TransferReport,
    ) -> None:
        try:
            _move_replacing(source, destination)
        except OSError as e:
            logger.error("Error moving %s to %s: %s", source, destination, e)
            report.record(TransferOutcome(step, source, destination, error=str(e)))
            return
        logger.debug("Moved %s to %s", source, destination)
        report.record(TransferOutcome(step, source, destination))


def _move_replacing(source: Path, destination: Path) -> None:
    """Move a file, overwriting an existing file at ``destination``."""
    try:
        os.replace(source, destination)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        shutil.move(source, destination)
