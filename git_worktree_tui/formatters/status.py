"""Status, flag and style formatting utilities."""

import os

from git_worktree_tui.models.worktree import WorktreeRecord
from git_worktree_tui.constants import (
    SYMBOL_BARE,
    SYMBOL_CURRENT,
    SYMBOL_LOCKED,
    SYMBOL_MAIN,
    SYMBOL_PRUNABLE,
    RowStyleType,
)


def format_status(record: WorktreeRecord) -> str:
    """
    Format the status column for a worktree.

    Args:
        record: Worktree record

    Returns:
        "bare", "prunable", or the status summary
    """
    if record.is_bare:
        return "bare"
    if record.is_prunable:
        return "prunable"
    return record.status.summary()


def format_flags(record: WorktreeRecord) -> str:
    """Marker symbols for main/current/locked/prunable/bare worktrees."""
    flags = []
    if record.is_main:
        flags.append(SYMBOL_MAIN)
    if record.is_current:
        flags.append(SYMBOL_CURRENT)
    if record.is_locked:
        flags.append(SYMBOL_LOCKED)
    if record.is_prunable:
        flags.append(SYMBOL_PRUNABLE)
    if record.is_bare:
        flags.append(SYMBOL_BARE)
    return "".join(flags)


def get_row_style_type(record: WorktreeRecord) -> str:
    """
    Determine the style type for a worktree row.

    Args:
        record: Worktree record

    Returns:
        RowStyleType constant
    """
    if record.is_prunable:
        return RowStyleType.PRUNABLE
    if record.is_main:
        return RowStyleType.MAIN
    if record.is_locked:
        return RowStyleType.LOCKED
    if not record.status.is_clean:
        return RowStyleType.DIRTY
    return RowStyleType.CLEAN


def truncate(text: str, max_len: int) -> str:
    """Shorten ``text`` to ``max_len`` characters, ending with an ellipsis."""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    if max_len == 1:
        return "…"
    return text[: max_len - 1] + "…"


def format_path(path: str, max_len: int = 60) -> str:
    """Shorten a path for display, replacing the home directory with ``~``."""
    home = os.path.expanduser("~")
    if path == home or path.startswith(home + os.sep):
        path = "~" + path[len(home):]
    if len(path) <= max_len:
        return path
    # Keep the tail, which is the part that tells worktrees apart
    return "…" + path[-(max_len - 1):]
