"""Facade tying the scanner, watcher and transfer coordinator together."""

import logging
import queue
import threading
from collections.abc import Callable
from typing import Self

from ordermanager.catalog import CatalogListener, CatalogState, GroupCatalog
from ordermanager.config import Config
from ordermanager.scanner import Scanner, ScanError
from ordermanager.transfer import TransferCoordinator, TransferReport
from ordermanager.watcher import DirectoryWatcher, WatchSetupError

logger = logging.getLogger(__name__)


class OrderManager:
    """Entry point for a presentation layer.

    Rescan requests coming from the watcher thread are queued and only
    executed by ``process_pending()`` on the caller's own thread. Scans and
    transfers share one lock, so a scan never observes a transfer halfway.
    ``wakeup`` is called from the watcher thread whenever a request is
    queued, letting an event loop schedule ``process_pending()``.
    """

    def __init__(
        self,
        config: Config,
        wakeup: Callable[[], None] | None = None,
        watcher_factory: Callable[..., DirectoryWatcher] = DirectoryWatcher,
    ):
        self.config = config
        self.state = CatalogState()
        self.scanner = Scanner()
        self.coordinator = TransferCoordinator(
            config.source_dir, config.target_dir, config.archive_dir
        )
        self.watcher = watcher_factory(
            config.source_dir,
            self.request_rescan,
            poll_interval=config.watcher.poll_interval,
        )
        self._wakeup = wakeup
        self._requests: queue.Queue[None] = queue.Queue()
        self._lock = threading.RLock()

    def start(self) -> None:
        """Create the directories, load the catalog and start live updates.

        DirectoryCreateError propagates. A watcher that cannot be set up is
        logged and leaves manual rescans working.
        """
        self.config.ensure_directories()
        self.rescan()
        try:
            self.watcher.start()
        except WatchSetupError as e:
            logger.error("Live updates disabled: %s", e)

    def close(self) -> None:
        self.watcher.stop()
        self.state.clear()

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def live_updates(self) -> bool:
        return self.watcher.is_watching

    def catalog(self) -> list[str]:
        return self.state.keys()

    def groups(self) -> GroupCatalog:
        return self.state.snapshot()

    def add_listener(self, listener: CatalogListener) -> None:
        self.state.add_listener(listener)

    def remove_listener(self, listener: CatalogListener) -> None:
        self.state.remove_listener(listener)

    def request_rescan(self) -> None:
        """Queue a rescan; safe to call from any thread."""
        self._requests.put(None)
        if self._wakeup is not None:
            self._wakeup()

    def process_pending(self, timeout: float | None = 0) -> bool:
        """Run one rescan if any requests are queued.

        Waits up to ``timeout`` seconds for a request (``None`` blocks).
        Any number of queued requests collapse into a single rescan.
        Returns True if a rescan was attempted.
        """
        try:
            if timeout == 0:
                self._requests.get_nowait()
            else:
                self._requests.get(timeout=timeout)
        except queue.Empty:
            return False

        while True:
            try:
                self._requests.get_nowait()
            except queue.Empty:
                break

        self.rescan()
        return True

    def rescan(self) -> bool:
        """Rebuild the catalog from the source directory.

        On failure the previous catalog is kept and False is returned.
        """
        with self._lock:
            try:
                catalog = self.scanner.scan(self.config.source_dir)
            except ScanError as e:
                logger.error("Rescan failed, keeping previous catalog: %s", e)
                return False
            self.state.replace(catalog)
            return True

    def select_and_transfer(self, key: str | None) -> TransferReport | None:
        """Archive the target, then move the group ``key`` into it.

        ``None`` means nothing is selected and does nothing. The catalog is
        rescanned after the transfer.
        """
        if key is None:
            return None

        with self._lock:
            report = self.coordinator.transfer(key)
            self.rescan()
        return report
