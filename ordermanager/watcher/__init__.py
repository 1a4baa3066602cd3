"""Watcher module for live source directory updates."""

from .watcher import DirectoryWatcher, WatcherState, WatchSetupError

__all__ = ["DirectoryWatcher", "WatcherState", "WatchSetupError"]
