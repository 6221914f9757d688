from __future__ import annotations

import argparse
import importlib.util
import json
from pathlib import Path

import pytest

from branch_tracker.process import FakeProcessExecutor, ProcessResult
from branch_tracker.tracker import BRANCH_COMMAND, SHORT_HASH_COMMAND
from branch_tracker.watching import FakePathProber


def load_diag(name: str):
    module_path = Path(__file__).resolve().parents[1] / "scripts" / "branch_diag.py"
    spec = importlib.util.spec_from_file_location(name, module_path)
    assert spec and spec.loader
    diag = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(diag)
    return diag


def test_label_prints_detached_hash(monkeypatch, capsys, tmp_path: Path) -> None:
    diag = load_diag("branch_diag_label_module")
    executor = FakeProcessExecutor({BRANCH_COMMAND: ["HEAD\n"], SHORT_HASH_COMMAND: ["a1b2c3d\n"]})
    monkeypatch.setattr(diag, "load_executor", lambda: executor)

    diag.cmd_label(argparse.Namespace(directory=str(tmp_path)))

    payload = json.loads(capsys.readouterr().out)
    assert payload == {"directory": str(tmp_path.resolve()), "label": "a1b2c3d", "detached": True}
    assert executor.invocations[0] == (BRANCH_COMMAND, tmp_path.resolve())


def test_label_prints_branch_name(monkeypatch, capsys, tmp_path: Path) -> None:
    diag = load_diag("branch_diag_branch_module")
    executor = FakeProcessExecutor({BRANCH_COMMAND: ["main\n"]})
    monkeypatch.setattr(diag, "load_executor", lambda: executor)

    diag.main(["label", "--directory", str(tmp_path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload == {"directory": str(tmp_path.resolve()), "label": "main", "detached": False}
    assert executor.commands == [BRANCH_COMMAND]


def test_label_exits_nonzero_when_unknown(monkeypatch, capsys, tmp_path: Path) -> None:
    diag = load_diag("branch_diag_unknown_module")
    failing = ProcessResult(args=("git",), returncode=128, stdout="", stderr="fatal: not a git repository")
    monkeypatch.setattr(diag, "load_executor", lambda: FakeProcessExecutor({BRANCH_COMMAND: [failing]}))

    with pytest.raises(SystemExit) as excinfo:
        diag.main(["label", "--directory", str(tmp_path)])

    assert excinfo.value.code == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["label"] is None
    assert payload["detached"] is False


def test_probe_reports_watch_path(monkeypatch, capsys, tmp_path: Path) -> None:
    diag = load_diag("branch_diag_probe_module")
    prober = FakePathProber(accessible=False)
    monkeypatch.setattr(diag, "load_prober", lambda: prober)

    diag.main(["probe", "--directory", str(tmp_path)])

    payload = json.loads(capsys.readouterr().out)
    expected = tmp_path.resolve() / ".git" / "logs" / "HEAD"
    assert payload == {"watch_path": str(expected), "accessible": False}
    assert prober.probed == [expected]


def test_probe_defaults_to_configured_directory(monkeypatch, capsys, tmp_path: Path) -> None:
    diag = load_diag("branch_diag_default_module")
    monkeypatch.setenv("BRANCH_TRACKER_DIRECTORY", str(tmp_path))
    reflog = tmp_path / ".git" / "logs"
    reflog.mkdir(parents=True)
    (reflog / "HEAD").write_text("", encoding="utf-8")

    diag.main(["probe"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["accessible"] is True


def test_no_command_prints_help(capsys) -> None:
    diag = load_diag("branch_diag_help_module")

    diag.main([])

    assert "Branch tracker diagnostics" in capsys.readouterr().out
