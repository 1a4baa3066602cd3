"""Test doubles for the watchdog observer."""

import threading
import time

from ordermanager.watcher import DirectoryWatcher

WAIT_SECONDS = 5.0


class FakeEmitter:
    def __init__(self):
        self.alive = True

    def is_alive(self) -> bool:
        return self.alive


class FakeObserver:
    """Stands in for a watchdog observer; events are emitted by the test."""

    def __init__(self, fail_on_start: bool = False):
        self.fail_on_start = fail_on_start
        self.handlers: list = []
        self.emitter = FakeEmitter()
        self.started = False
        self.stopped = False

    @property
    def emitters(self) -> set[FakeEmitter]:
        return {self.emitter} if self.handlers else set()

    def is_alive(self) -> bool:
        return self.started and not self.stopped

    def schedule(self, handler, path, recursive=False):
        self.handlers.append((handler, path, recursive))

    def unschedule_all(self):
        self.handlers.clear()

    def start(self):
        if self.fail_on_start:
            raise OSError("inotify watch limit reached")
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass

    def lose_watch(self):
        """Simulate the emitter thread exiting, as when the directory is removed."""
        self.emitter.alive = False

    def emit(self, event):
        for handler, _path, _recursive in self.handlers:
            handler.dispatch(event)


class ObserverFactory:
    def __init__(self, fail_on_start: bool = False):
        self.fail_on_start = fail_on_start
        self.created: list[FakeObserver] = []

    def __call__(self) -> FakeObserver:
        observer = FakeObserver(self.fail_on_start)
        self.created.append(observer)
        return observer


class CallbackRecorder:
    def __init__(self):
        self.calls = 0
        self.called = threading.Event()

    def __call__(self) -> None:
        self.calls += 1
        self.called.set()


def fake_watchers(observers: ObserverFactory):
    """Watcher factory for OrderManager that uses fake observers."""

    def watcher_factory(directory, on_change, poll_interval):
        return DirectoryWatcher(directory, on_change, poll_interval, observer_factory=observers)

    return watcher_factory


def wait_until(condition, timeout: float = WAIT_SECONDS) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()
