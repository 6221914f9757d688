"""External process execution for branch queries."""

from .runner import (
    FakeProcessExecutor,
    GitProcessExecutor,
    ProcessExecutor,
    ProcessLaunchError,
    ProcessResult,
    ProcessRunnerError,
)

__all__ = [
    "FakeProcessExecutor",
    "GitProcessExecutor",
    "ProcessExecutor",
    "ProcessLaunchError",
    "ProcessResult",
    "ProcessRunnerError",
]
