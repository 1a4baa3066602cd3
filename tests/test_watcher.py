"""Tests for watcher module."""

# pylint: disable=redefined-outer-name

import shutil
import threading
import time
from pathlib import Path

import pytest
from watchdog.events import FileCreatedEvent, FileOpenedEvent

from ordermanager.watcher import DirectoryWatcher, WatcherState, WatchSetupError
from tests.fakes import WAIT_SECONDS, CallbackRecorder, ObserverFactory, wait_until


@pytest.fixture
def factory() -> ObserverFactory:
    return ObserverFactory()


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


class TestDirectoryWatcher:
    """Tests for DirectoryWatcher class."""

    def test_initially_stopped(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)

        assert watcher.state is WatcherState.STOPPED
        assert not watcher.is_watching
        assert factory.created == []

    def test_start_registers_non_recursive_watch(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)
        watcher.start()
        try:
            observer = factory.created[0]
            assert observer.started
            assert len(observer.handlers) == 1
            assert observer.handlers[0][1:] == (str(tmp_path), False)
            assert watcher.state is WatcherState.WATCHING
        finally:
            watcher.stop()

    def test_event_triggers_callback(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)
        watcher.start()
        try:
            factory.created[0].emit(FileCreatedEvent(str(tmp_path / "a.txt")))
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()

    def test_start_twice_creates_single_loop(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)
        watcher.start()
        watcher.start()
        try:
            assert len(factory.created) == 1
            factory.created[0].emit(FileCreatedEvent(str(tmp_path / "a.txt")))
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()

        assert recorder.calls == 1

    def test_ignores_event_kinds_outside_watch_set(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, poll_interval=0.01, observer_factory=factory)
        watcher.start()
        try:
            factory.created[0].emit(FileOpenedEvent(str(tmp_path / "a.txt")))
            assert not recorder.called.wait(0.2)
        finally:
            watcher.stop()

    def test_stop_without_start(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)
        watcher.stop()

        assert watcher.state is WatcherState.STOPPED

    def test_stop_twice(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)
        watcher.start()
        watcher.stop()
        watcher.stop()

        assert watcher.state is WatcherState.STOPPED
        assert factory.created[0].stopped

    def test_stop_unblocks_wait_promptly(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, poll_interval=60, observer_factory=factory)
        watcher.start()

        started = time.monotonic()
        watcher.stop()

        assert time.monotonic() - started < WAIT_SECONDS
        assert recorder.calls == 0

    def test_idle_wakeups_keep_watching(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, poll_interval=0.01, observer_factory=factory)
        watcher.start()
        try:
            time.sleep(0.1)
            assert watcher.is_watching
            assert recorder.calls == 0

            factory.created[0].emit(FileCreatedEvent(str(tmp_path / "a.txt")))
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()

    def test_callback_error_keeps_loop_alive(self, tmp_path: Path, factory):
        calls: list[int] = []
        second_call = threading.Event()

        def on_change() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            second_call.set()

        watcher = DirectoryWatcher(tmp_path, on_change, observer_factory=factory)
        watcher.start()
        try:
            observer = factory.created[0]
            observer.emit(FileCreatedEvent(str(tmp_path / "a.txt")))
            deadline = time.monotonic() + WAIT_SECONDS
            while not calls and time.monotonic() < deadline:
                time.sleep(0.01)

            observer.emit(FileCreatedEvent(str(tmp_path / "b.txt")))
            assert second_call.wait(WAIT_SECONDS)
        finally:
            watcher.stop()

    def test_restart_after_stop(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=factory)
        watcher.start()
        watcher.stop()
        watcher.start()
        try:
            assert len(factory.created) == 2
            factory.created[1].emit(FileCreatedEvent(str(tmp_path / "a.txt")))
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()

    def test_setup_failure_raises_and_stays_stopped(self, tmp_path: Path, recorder):
        failing = ObserverFactory(fail_on_start=True)
        watcher = DirectoryWatcher(tmp_path, recorder, observer_factory=failing)

        with pytest.raises(WatchSetupError):
            watcher.start()

        assert watcher.state is WatcherState.STOPPED
        assert failing.created[0].handlers == []
        watcher.stop()

    def test_lost_watch_returns_to_stopped(self, tmp_path: Path, recorder, factory):
        watcher = DirectoryWatcher(tmp_path, recorder, poll_interval=0.01, observer_factory=factory)
        watcher.start()
        factory.created[0].lose_watch()

        assert wait_until(lambda: not watcher.is_watching)
        assert factory.created[0].stopped
        watcher.stop()

        watcher.start()
        try:
            assert len(factory.created) == 2
            factory.created[1].emit(FileCreatedEvent(str(tmp_path / "a.txt")))
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()


class TestDirectoryWatcherLive:
    """Tests against a real watchdog observer."""

    def test_detects_new_file(self, tmp_path: Path, recorder):
        watcher = DirectoryWatcher(tmp_path, recorder, poll_interval=0.05)
        watcher.start()
        try:
            (tmp_path / "incoming.pdf").write_text("new")
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()

        assert not watcher.is_watching

    def test_recovers_after_directory_removed(self, tmp_path: Path, recorder):
        source = tmp_path / "source"
        source.mkdir()
        watcher = DirectoryWatcher(source, recorder, poll_interval=0.05)
        watcher.start()
        try:
            shutil.rmtree(source)
            assert wait_until(lambda: not watcher.is_watching)

            source.mkdir()
            recorder.called.clear()
            watcher.start()
            assert watcher.is_watching

            (source / "newer.txt").write_text("new")
            assert recorder.called.wait(WAIT_SECONDS)
        finally:
            watcher.stop()
