"""Formatting utilities for git-worktree-tui.

This package provides formatting functions for displaying worktree information,
organized into logical modules:
- date: Relative time formatting
- status: Status, flags and row style formatting
"""

from .date import format_time_ago, format_relative_time

from .status import (
    format_flags,
    format_status,
    format_path,
    get_row_style_type,
    truncate,
)

__all__ = [
    # Date
    "format_time_ago",
    "format_relative_time",
    # Status
    "format_flags",
    "format_status",
    "format_path",
    "get_row_style_type",
    "truncate",
]
