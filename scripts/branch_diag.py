"""Branch tracker diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from branch_tracker.config import TrackerSettings
from branch_tracker.process import GitProcessExecutor, ProcessExecutor
from branch_tracker.tracker import resolve_branch, watch_path_for
from branch_tracker.watching import AsyncPathProber, PathProber


def load_executor() -> ProcessExecutor:
    return GitProcessExecutor()


def load_prober() -> PathProber:
    return AsyncPathProber()


def resolve_directory(args: argparse.Namespace) -> Path:
    if args.directory:
        return Path(args.directory).expanduser().resolve()
    return TrackerSettings().directory.expanduser().resolve()


def cmd_label(args: argparse.Namespace) -> None:
    directory = resolve_directory(args)
    resolution = asyncio.run(resolve_branch(load_executor(), directory))
    payload = {"directory": str(directory), "label": resolution.label, "detached": resolution.detached}
    print(json.dumps(payload, indent=2))
    if resolution.label is None:
        raise SystemExit(1)


def cmd_probe(args: argparse.Namespace) -> None:
    directory = resolve_directory(args)
    path = watch_path_for(directory)
    accessible = asyncio.run(load_prober().can_access(path))
    print(json.dumps({"watch_path": str(path), "accessible": accessible}, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Branch tracker diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_label = sub.add_parser("label", help="Resolve the current branch label once")
    p_label.add_argument("--directory", help="Working directory (default: BRANCH_TRACKER_DIRECTORY or cwd)")
    p_label.set_defaults(func=cmd_label)

    p_probe = sub.add_parser("probe", help="Check whether the branch watch path is accessible")
    p_probe.add_argument("--directory", help="Working directory (default: BRANCH_TRACKER_DIRECTORY or cwd)")
    p_probe.set_defaults(func=cmd_probe)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
