"""Keep a git working directory's current branch label up to date."""

from .tracker import (
    BranchNameTracker,
    BranchResolution,
    TrackerSnapshot,
    TrackerStateError,
    resolve_branch,
    resolve_branch_label,
    track_branch,
    watch_path_for,
)

__version__ = "0.1.0"

__all__ = [
    "BranchNameTracker",
    "BranchResolution",
    "TrackerSnapshot",
    "TrackerStateError",
    "__version__",
    "resolve_branch",
    "resolve_branch_label",
    "track_branch",
    "watch_path_for",
]
