from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from branch_tracker.process import (
    FakeProcessExecutor,
    GitProcessExecutor,
    ProcessLaunchError,
    ProcessResult,
)
from branch_tracker.process.utils import sanitize_environment


def write_fake_git(directory: Path, body: str) -> None:
    script = directory / "git"
    script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    script.chmod(0o755)


def test_git_executor_runs_command_in_directory(tmp_path: Path) -> None:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    write_fake_git(bin_dir, 'echo "$@"\npwd\n')
    workdir = tmp_path / "repo"
    workdir.mkdir()

    executor = GitProcessExecutor(env={"PATH": str(bin_dir)})
    result = asyncio.run(executor.run("git rev-parse --abbrev-ref HEAD", workdir))

    assert result.ok
    lines = result.stdout.splitlines()
    assert lines[0] == "rev-parse --abbrev-ref HEAD"
    assert Path(lines[1]).resolve() == workdir.resolve()
    assert result.args == ("git", "rev-parse", "--abbrev-ref", "HEAD")


def test_git_executor_reports_nonzero_exit(tmp_path: Path) -> None:
    write_fake_git(tmp_path, "echo 'fatal: not a git repository' >&2\nexit 128\n")

    executor = GitProcessExecutor(env={"PATH": str(tmp_path)})
    result = asyncio.run(executor.run("git rev-parse --abbrev-ref HEAD", tmp_path))

    assert not result.ok
    assert result.returncode == 128
    assert "not a git repository" in result.stderr


def test_git_executor_missing_binary(tmp_path: Path) -> None:
    executor = GitProcessExecutor(env={"PATH": str(tmp_path / "empty")})

    with pytest.raises(ProcessLaunchError):
        asyncio.run(executor.run("git rev-parse --abbrev-ref HEAD", tmp_path))


def test_git_executor_missing_directory(tmp_path: Path) -> None:
    write_fake_git(tmp_path, "echo main\n")
    executor = GitProcessExecutor(env={"PATH": str(tmp_path)})

    with pytest.raises(ProcessLaunchError):
        asyncio.run(executor.run("git rev-parse --abbrev-ref HEAD", tmp_path / "missing"))


def test_fake_executor_replays_queue_then_repeats_last() -> None:
    fake = FakeProcessExecutor({"git status": ["one\n", "two\n"]})

    async def scenario() -> list[str]:
        results = [await fake.run("git status", Path("/repo")) for _ in range(3)]
        return [result.stdout for result in results]

    assert asyncio.run(scenario()) == ["one\n", "two\n", "two\n"]
    assert fake.commands == ["git status"] * 3
    assert fake.invocations[0] == ("git status", Path("/repo"))


def test_fake_executor_unscripted_command_fails() -> None:
    fake = FakeProcessExecutor()

    result = asyncio.run(fake.run("git rev-parse --short HEAD", Path("/repo")))

    assert not result.ok
    assert "no scripted response" in result.stderr


def test_fake_executor_raises_scripted_exception() -> None:
    fake = FakeProcessExecutor()
    fake.queue("git rev-parse --abbrev-ref HEAD", ProcessLaunchError("git missing"))

    with pytest.raises(ProcessLaunchError):
        asyncio.run(fake.run("git rev-parse --abbrev-ref HEAD", Path("/repo")))


def test_fake_executor_returns_scripted_result() -> None:
    scripted = ProcessResult(args=("git",), returncode=1, stdout="", stderr="boom")
    fake = FakeProcessExecutor()
    fake.replace("git log", scripted)

    assert asyncio.run(fake.run("git log", Path("/repo"))) is scripted


def test_sanitize_environment_strips_git_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_DIR", "/elsewhere/.git")
    monkeypatch.setenv("GIT_WORK_TREE", "/elsewhere")
    env = sanitize_environment({"LANG": "C"})

    assert "GIT_DIR" not in env
    assert "GIT_WORK_TREE" not in env
    assert env["LANG"] == "C"
