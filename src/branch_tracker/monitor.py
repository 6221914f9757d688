"""Console consumer that prints branch label transitions."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, TextIO

from . import __version__
from .config import TrackerSettings, get_settings
from .process import ProcessExecutor
from .tracker import BranchNameTracker
from .watching import FileWatcher, PathProber

UNKNOWN_LABEL = "(unknown)"


def configure_logging(level: str) -> None:
    """Configure root logging for the monitor."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def format_label(label: str | None) -> str:
    return label if label is not None else UNKNOWN_LABEL


def create_tracker(
    settings: Optional[TrackerSettings] = None,
    *,
    executor: ProcessExecutor | None = None,
    prober: PathProber | None = None,
    watcher: FileWatcher | None = None,
) -> BranchNameTracker:
    """Build an unstarted tracker from settings, with optional collaborator overrides."""

    settings = settings or get_settings()
    return BranchNameTracker(
        settings.directory,
        executor=executor,
        prober=prober,
        watcher=watcher,
        watch_enabled=settings.watch_enabled,
        ordered_updates=settings.ordered_updates,
    )


async def run_monitor(
    tracker: BranchNameTracker,
    *,
    stream: TextIO | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    """Print every label transition of ``tracker`` until ``stop`` is set."""

    out = stream or sys.stdout

    def emit(label: str | None) -> None:
        print(format_label(label), file=out, flush=True)

    unsubscribe = tracker.subscribe(emit)
    try:
        async with tracker:
            await tracker.drain()
            if tracker.label is None:
                emit(None)
            if not tracker.watching:
                logging.getLogger(__name__).info(
                    "Branch watch unavailable; label will not refresh",
                    extra={"directory": str(tracker.directory)},
                )
            await (stop or asyncio.Event()).wait()
    finally:
        unsubscribe()


def main() -> None:
    """Entry point for the ``branch-tracker`` console script."""

    settings = get_settings()
    configure_logging(settings.log_level)

    tracker = create_tracker(settings)
    logging.getLogger(__name__).info(
        "Launching branch tracker",
        extra={
            "version": __version__,
            "directory": str(settings.directory),
            "watch_enabled": settings.watch_enabled,
            "ordered_updates": settings.ordered_updates,
        },
    )
    try:
        asyncio.run(run_monitor(tracker))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
