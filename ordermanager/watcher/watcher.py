"""Background watcher signalling changes in the source directory."""

import logging
import queue
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

WATCHED_EVENT_TYPES = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)

# Queued by stop() to unblock the loop.
_CLOSED = object()


class WatchSetupError(Exception):
    """Raised when change notifications cannot be registered for a directory."""


class WatcherState(Enum):
    """State of a DirectoryWatcher."""

    STOPPED = "stopped"
    WATCHING = "watching"


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: queue.Queue):
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in WATCHED_EVENT_TYPES:
            self._events.put(event)


class DirectoryWatcher:
    """Calls ``on_change`` once per batch of filesystem events in a directory.

    The callback runs on the watcher's own thread and must only hand the
    request over to whichever context owns the catalog.
    If the watch dies on its own, e.g. because the directory was removed,
    the watcher returns to STOPPED and a later ``start()`` registers anew.
    """

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[], None],
        poll_interval: float = 0.5,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ):
        self.directory = directory
        self.poll_interval = poll_interval
        self._on_change = on_change
        self._observer_factory = observer_factory
        self._lock = threading.Lock()
        self._state = WatcherState.STOPPED
        self._observer: BaseObserver | None = None
        self._thread: threading.Thread | None = None
        self._events: queue.Queue | None = None
        self._stop_event: threading.Event | None = None

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_watching(self) -> bool:
        return self._state is WatcherState.WATCHING

    def start(self) -> None:
        with self._lock:
            if self._state is WatcherState.WATCHING:
                logger.debug("Already watching %s", self.directory)
                return

            events: queue.Queue = queue.Queue()
            stop_event = threading.Event()
            observer = self._observer_factory()
            try:
                observer.schedule(_ChangeHandler(events), str(self.directory), recursive=False)
                observer.start()
            except OSError as e:
                observer.unschedule_all()
                raise WatchSetupError(f"Cannot watch directory {self.directory}: {e}") from e

            thread = threading.Thread(
                target=self._run,
                args=(observer, events, stop_event),
                name=f"watcher-{self.directory.name}",
                daemon=True,
            )
            self._observer = observer
            self._events = events
            self._stop_event = stop_event
            self._thread = thread
            self._state = WatcherState.WATCHING
            thread.start()

        logger.info("Watching %s for changes", self.directory)

    def stop(self) -> None:
        with self._lock:
            if self._state is WatcherState.STOPPED:
                return

            observer, thread = self._observer, self._thread
            events, stop_event = self._events, self._stop_event
            self._observer = self._thread = self._events = self._stop_event = None
            self._state = WatcherState.STOPPED

        assert observer is not None and thread is not None
        assert events is not None and stop_event is not None

        stop_event.set()
        events.put(_CLOSED)
        observer.stop()
        observer.join()
        if thread is not threading.current_thread():
            thread.join()

        logger.info("Stopped watching %s", self.directory)

    def _run(
        self,
        observer: BaseObserver,
        events: queue.Queue,
        stop_event: threading.Event,
    ) -> None:
        while not stop_event.is_set():
            try:
                first = events.get(timeout=self.poll_interval)
            except queue.Empty:
                if not _is_alive(observer):
                    self._release_lost_watch(observer, stop_event)
                    break
                continue

            batch = [first, *_drain(events)]
            if stop_event.is_set() or any(item is _CLOSED for item in batch):
                break

            self._dispatch(batch)

    def _release_lost_watch(self, observer: BaseObserver, stop_event: threading.Event) -> None:
        """Move to STOPPED after the underlying watch died on its own."""
        with self._lock:
            if self._stop_event is not stop_event:
                return
            self._observer = self._thread = self._events = self._stop_event = None
            self._state = WatcherState.STOPPED

        logger.error("Lost watch on %s; live updates stopped", self.directory)
        stop_event.set()
        observer.stop()
        observer.join()

    def _dispatch(self, batch: list[FileSystemEvent]) -> None:
        logger.debug("%d change event(s) in %s", len(batch), self.directory)
        try:
            self._on_change()
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Change callback failed for %s", self.directory)


def _is_alive(observer: BaseObserver) -> bool:
    # The emitter thread exits when the watched directory goes away.
    emitters = observer.emitters
    return observer.is_alive() and bool(emitters) and all(e.is_alive() for e in emitters)


def _drain(events: queue.Queue) -> list:
    drained = []
    while True:
        try:
            drained.append(events.get_nowait())
        except queue.Empty:
            return drained
