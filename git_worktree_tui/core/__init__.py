"""Core functionality for git-worktree-tui"""

from .worktree_keeper import WorktreeKeeper

__all__ = ["WorktreeKeeper"]
