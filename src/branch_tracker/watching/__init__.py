"""Filesystem probing and change notification."""

from .probe import AsyncPathProber, FakePathProber, PathProber
from .watcher import (
    FakeFileWatcher,
    FakeWatchHandle,
    FileWatcher,
    WatchdogFileWatcher,
    WatchHandle,
    WatchUnavailableError,
)

__all__ = [
    "AsyncPathProber",
    "FakeFileWatcher",
    "FakePathProber",
    "FakeWatchHandle",
    "FileWatcher",
    "PathProber",
    "WatchdogFileWatcher",
    "WatchHandle",
    "WatchUnavailableError",
]
