"""Data models for git-worktree-tui."""

from .branch import BranchRef
from .worktree import (
    CommitInfo,
    HeadInfo,
    LinkedOrigin,
    MainOrigin,
    WorktreeDetails,
    WorktreeIdentity,
    WorktreeOrigin,
    WorktreeRecord,
    WorktreeStatus,
)

__all__ = [
    "BranchRef",
    "CommitInfo",
    "HeadInfo",
    "LinkedOrigin",
    "MainOrigin",
    "WorktreeDetails",
    "WorktreeIdentity",
    "WorktreeOrigin",
    "WorktreeRecord",
    "WorktreeStatus",
]
