"""Single-file change subscriptions backed by watchdog."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

EventCallback = Callable[[str], None]

# Read-only access events on inotify; they never mean the file changed.
_IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}


class WatchUnavailableError(RuntimeError):
    """Raised when a change subscription cannot be registered."""


class WatchHandle(Protocol):
    def close(self) -> None:
        ...


class FileWatcher(Protocol):
    def watch(self, path: Path, on_event: EventCallback) -> WatchHandle:
        ...


class _SingleFileHandler(FileSystemEventHandler):
    """Forward events for one file onto the owning event loop."""

    def __init__(self, target: Path, loop: asyncio.AbstractEventLoop, on_event: EventCallback) -> None:
        super().__init__()
        self._target = os.path.normpath(str(target))
        self._loop = loop
        self._on_event = on_event

    def _matches(self, event: FileSystemEvent) -> bool:
        candidates = [event.src_path, getattr(event, "dest_path", "")]
        return any(
            os.path.normpath(os.fsdecode(candidate)) == self._target for candidate in candidates if candidate
        )

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in _IGNORED_EVENT_TYPES:
            return
        if not self._matches(event):
            return
        try:
            self._loop.call_soon_threadsafe(self._on_event, event.event_type)
        except RuntimeError:
            logger.debug("Dropping change event after event loop closed", extra={"path": self._target})


class ObserverWatchHandle:
    """Owns a running watchdog observer; ``close`` stops it once."""

    def __init__(self, observer: Observer, path: Path) -> None:
        self._observer = observer
        self._path = path
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=1.0)


class WatchdogFileWatcher:
    """Subscribe to changes of a single file.

    watchdog observes directories, so the parent directory is scheduled
    non-recursively and events are filtered down to the requested path. The
    callback always runs on the event loop that called ``watch``.
    """

    def watch(self, path: Path, on_event: EventCallback) -> ObserverWatchHandle:
        target = Path(path)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise WatchUnavailableError("watch() must be called from a running event loop") from exc

        observer = Observer()
        try:
            observer.schedule(_SingleFileHandler(target, loop, on_event), str(target.parent), recursive=False)
            observer.start()
        except OSError as exc:
            raise WatchUnavailableError(f"Unable to watch {target}: {exc}") from exc
        return ObserverWatchHandle(observer, target)


class FakeWatchHandle:
    def __init__(self, path: Path, on_event: EventCallback) -> None:
        self.path = path
        self.on_event = on_event
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def close(self) -> None:
        self.close_count += 1


class FakeFileWatcher:
    """Test double that records registrations and fires events on demand."""

    def __init__(self, *, error: BaseException | None = None) -> None:
        self.error = error
        self.calls: list[Path] = []
        self.handles: list[FakeWatchHandle] = []

    def watch(self, path: Path, on_event: EventCallback) -> FakeWatchHandle:
        self.calls.append(Path(path))
        if self.error is not None:
            raise self.error
        handle = FakeWatchHandle(Path(path), on_event)
        self.handles.append(handle)
        return handle

    def fire(self, event_type: str = "modified") -> None:
        for handle in self.handles:
            if not handle.closed:
                handle.on_event(event_type)


__all__ = [
    "FakeFileWatcher",
    "FakeWatchHandle",
    "FileWatcher",
    "ObserverWatchHandle",
    "WatchdogFileWatcher",
    "WatchHandle",
    "WatchUnavailableError",
]
