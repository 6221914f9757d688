"""Live branch label tracking for a git working directory."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Coroutine

from .process import GitProcessExecutor, ProcessExecutor
from .watching import AsyncPathProber, FileWatcher, PathProber, WatchdogFileWatcher, WatchHandle

logger = logging.getLogger(__name__)

BRANCH_COMMAND = "git rev-parse --abbrev-ref HEAD"
SHORT_HASH_COMMAND = "git rev-parse --short HEAD"
DETACHED_HEAD = "HEAD"

LabelCallback = Callable[["str | None"], None]


class TrackerStateError(RuntimeError):
    """Raised when a tracker is used outside its lifecycle."""


@dataclass(frozen=True, slots=True)
class TrackerSnapshot:
    """Point-in-time view of a tracker."""

    directory: Path
    label: str | None
    watching: bool
    mounted: bool


def watch_path_for(directory: Path) -> Path:
    """Return the reflog file git appends to on every checkout and commit."""

    return Path(directory) / ".git" / "logs" / "HEAD"


async def _query(executor: ProcessExecutor, command: str, directory: Path) -> str | None:
    try:
        result = await executor.run(command, directory)
    except Exception:
        logger.debug("Git query raised", extra={"command": command, "directory": str(directory)}, exc_info=True)
        return None
    if not result.ok:
        logger.debug(
            "Git query failed",
            extra={
                "command": command,
                "directory": str(directory),
                "returncode": result.returncode,
                "stderr": result.stderr.strip(),
            },
        )
        return None
    return result.stdout.strip()


@dataclass(frozen=True, slots=True)
class BranchResolution:
    """Outcome of one label resolution."""

    label: str | None
    detached: bool


async def resolve_branch(executor: ProcessExecutor, directory: Path) -> BranchResolution:
    """Resolve the label and report whether HEAD was detached."""

    branch = await _query(executor, BRANCH_COMMAND, directory)
    if branch is None:
        return BranchResolution(label=None, detached=False)
    if branch == DETACHED_HEAD:
        return BranchResolution(label=await _query(executor, SHORT_HASH_COMMAND, directory), detached=True)
    return BranchResolution(label=branch, detached=False)


async def resolve_branch_label(executor: ProcessExecutor, directory: Path) -> str | None:
    """Resolve the branch name, or the short commit hash when HEAD is detached.

    Returns ``None`` when either query fails.
    """

    return (await resolve_branch(executor, directory)).label


class BranchNameTracker:
    """Keeps the branch label of ``directory`` current.

    ``start`` resolves the label and, concurrently, subscribes to
    ``.git/logs/HEAD`` so every checkout or commit re-resolves it. Failures
    never propagate: a failed query leaves the label ``None`` and a missing or
    unwatchable log file only disables auto-refresh. Every asynchronous
    continuation checks the liveness flag, so nothing mutates state or
    registers a watch once ``stop`` has run.
    """

    def __init__(
        self,
        directory: Path | str,
        *,
        executor: ProcessExecutor | None = None,
        prober: PathProber | None = None,
        watcher: FileWatcher | None = None,
        watch_enabled: bool = True,
        ordered_updates: bool = False,
    ) -> None:
        self._directory = Path(directory).expanduser().absolute()
        self._executor = executor or GitProcessExecutor()
        self._prober = prober or AsyncPathProber()
        self._watcher = watcher or WatchdogFileWatcher()
        self._watch_enabled = watch_enabled
        self._ordered_updates = ordered_updates

        self._label: str | None = None
        self._watch: WatchHandle | None = None
        self._mounted = False
        self._stopped = False
        self._tasks: set[asyncio.Task[None]] = set()
        self._subscribers: list[LabelCallback] = []
        self._issued = 0
        self._applied = 0

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def label(self) -> str | None:
        return self._label

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def watching(self) -> bool:
        return self._watch is not None

    def snapshot(self) -> TrackerSnapshot:
        return TrackerSnapshot(
            directory=self._directory,
            label=self._label,
            watching=self.watching,
            mounted=self._mounted,
        )

    def subscribe(self, callback: LabelCallback) -> Callable[[], None]:
        """Register ``callback`` for label transitions and return an unsubscribe function."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def start(self) -> None:
        """Begin tracking. Must be called from a running event loop."""

        if self._stopped:
            raise TrackerStateError("A stopped tracker cannot be restarted; create a new one")
        if self._mounted:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise TrackerStateError("start() must be called from a running event loop") from exc

        self._mounted = True
        logger.debug(
            "Starting branch tracker",
            extra={"directory": str(self._directory), "watch_enabled": self._watch_enabled},
        )
        self._spawn(self.refresh)
        if self._watch_enabled:
            self._spawn(self._setup_watch)

    def stop(self) -> None:
        """Stop tracking and release the watch subscription, if any. Idempotent."""

        self._stopped = True
        self._mounted = False
        handle, self._watch = self._watch, None
        if handle is not None:
            handle.close()
            logger.debug("Closed branch watch", extra={"directory": str(self._directory)})

    async def refresh(self) -> None:
        """Resolve the label once and apply it unless the tracker stopped meanwhile."""

        if not self._mounted:
            return
        self._issued += 1
        sequence = self._issued
        label = await resolve_branch_label(self._executor, self._directory)

        if not self._mounted:
            logger.debug("Discarding label resolved after stop", extra={"directory": str(self._directory)})
            return
        if self._ordered_updates:
            if sequence <= self._applied:
                logger.debug(
                    "Discarding out-of-order label",
                    extra={"sequence": sequence, "applied": self._applied, "label": label},
                )
                return
            self._applied = sequence
        self._set_label(label)

    async def drain(self) -> None:
        """Wait until no resolution or watch setup is in flight."""

        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def __aenter__(self) -> "BranchNameTracker":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.stop()

    def _spawn(self, factory: Callable[[], Coroutine[Any, Any, None]]) -> None:
        task = asyncio.get_running_loop().create_task(factory())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _set_label(self, label: str | None) -> None:
        if label == self._label:
            return
        previous, self._label = self._label, label
        logger.info(
            "Branch label changed",
            extra={"directory": str(self._directory), "previous": previous, "label": label},
        )
        for callback in list(self._subscribers):
            try:
                callback(label)
            except Exception:
                logger.exception("Branch label subscriber failed")

    async def _setup_watch(self) -> None:
        path = watch_path_for(self._directory)
        try:
            accessible = await self._prober.can_access(path)
        except Exception:
            logger.debug("Probing watch path raised", extra={"path": str(path)}, exc_info=True)
            return
        if not accessible:
            logger.debug("Watch path not accessible; auto-refresh disabled", extra={"path": str(path)})
            return

        if not self._mounted:
            return
        try:
            handle = self._watcher.watch(path, self._on_change)
        except Exception:
            logger.debug("Unable to register branch watch", extra={"path": str(path)}, exc_info=True)
            return
        self._watch = handle
        logger.debug("Watching for branch changes", extra={"path": str(path)})

    def _on_change(self, event_type: str) -> None:
        if not self._mounted:
            return
        logger.debug("Branch watch fired", extra={"event_type": event_type, "directory": str(self._directory)})
        self._spawn(self.refresh)


def track_branch(directory: Path | str, **kwargs: Any) -> BranchNameTracker:
    """Construct and start a tracker for ``directory``."""

    tracker = BranchNameTracker(directory, **kwargs)
    tracker.start()
    return tracker


__all__ = [
    "BRANCH_COMMAND",
    "BranchResolution",
    "BranchNameTracker",
    "DETACHED_HEAD",
    "SHORT_HASH_COMMAND",
    "TrackerSnapshot",
    "TrackerStateError",
    "resolve_branch",
    "resolve_branch_label",
    "track_branch",
    "watch_path_for",
]
