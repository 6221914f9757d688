"""Asynchronous accessibility probes for watched paths."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Protocol


class PathProber(Protocol):
    async def can_access(self, path: Path) -> bool:
        ...


class AsyncPathProber:
    """Check a path with ``os.access`` off the event loop thread."""

    def __init__(self, mode: int = os.F_OK) -> None:
        self._mode = mode

    async def can_access(self, path: Path) -> bool:
        return await asyncio.to_thread(os.access, path, self._mode)


class FakePathProber:
    """Test double returning a fixed answer, optionally held until ``gate`` is set."""

    def __init__(
        self,
        accessible: bool = True,
        *,
        error: BaseException | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.accessible = accessible
        self.error = error
        self.gate = gate
        self.probed: list[Path] = []

    async def can_access(self, path: Path) -> bool:
        self.probed.append(Path(path))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.accessible


__all__ = ["AsyncPathProber", "FakePathProber", "PathProber"]
