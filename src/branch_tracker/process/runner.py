"""Async executor for the git commands behind the branch label."""

from __future__ import annotations

import asyncio
import shlex
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

from .utils import sanitize_environment


class ProcessRunnerError(RuntimeError):
    """Base class for process executor errors."""


class ProcessLaunchError(ProcessRunnerError):
    """Raised when a command cannot be started (missing binary, bad working directory)."""


@dataclass(slots=True)
class ProcessResult:
    """Holds the outcome of a single command invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessExecutor(Protocol):
    """Runs one external command in a working directory."""

    async def run(self, command: str, cwd: Path) -> ProcessResult:
        ...


class GitProcessExecutor:
    """Execute commands asynchronously with ``asyncio`` subprocesses."""

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self._env = env

    async def run(self, command: str, cwd: Path) -> ProcessResult:
        args = shlex.split(command)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env if self._env is not None else sanitize_environment(),
            )
        except OSError as exc:
            raise ProcessLaunchError(f"Unable to run {command!r} in {cwd}: {exc}") from exc
        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return ProcessResult(args=tuple(args), returncode=process.returncode, stdout=stdout, stderr=stderr)


Outcome = Union[str, ProcessResult, BaseException]


class FakeProcessExecutor:
    """Test double that replays scripted outcomes per command string.

    An outcome is either stdout text (a successful run), a ``ProcessResult`` or
    an exception to raise. Once a command's queue is down to its last outcome,
    that outcome is reused for every further call.
    """

    def __init__(self, responses: dict[str, list[Outcome]] | None = None) -> None:
        self._responses: dict[str, list[Outcome]] = defaultdict(list)
        for command, outcomes in (responses or {}).items():
            self._responses[command].extend(outcomes)
        self._invocations: list[tuple[str, Path]] = []

    def queue(self, command: str, *outcomes: Outcome) -> None:
        self._responses[command].extend(outcomes)

    def replace(self, command: str, *outcomes: Outcome) -> None:
        self._responses[command] = list(outcomes)

    async def run(self, command: str, cwd: Path) -> ProcessResult:
        self._invocations.append((command, Path(cwd)))
        await asyncio.sleep(0)
        pending = self._responses.get(command)
        if not pending:
            return ProcessResult(
                args=tuple(shlex.split(command)),
                returncode=128,
                stdout="",
                stderr=f"fatal: no scripted response for {command!r}",
            )
        outcome = pending.pop(0) if len(pending) > 1 else pending[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, ProcessResult):
            return outcome
        return ProcessResult(args=tuple(shlex.split(command)), returncode=0, stdout=outcome, stderr="")

    @property
    def invocations(self) -> list[tuple[str, Path]]:
        return self._invocations

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self._invocations]


__all__ = [
    "FakeProcessExecutor",
    "GitProcessExecutor",
    "ProcessExecutor",
    "ProcessLaunchError",
    "ProcessResult",
    "ProcessRunnerError",
]
