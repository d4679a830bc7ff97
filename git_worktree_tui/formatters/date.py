"""Date and time formatting utilities."""

import time
from typing import Optional


def format_time_ago(elapsed_seconds: int) -> str:
    """
    Summarize an elapsed time in the coarsest applicable unit.

    Args:
        elapsed_seconds: Seconds since the event (negative values count as 0)

    Returns:
        String like "42s ago", "5m ago", "3h ago" or "12d ago"
    """
    seconds = max(0, int(elapsed_seconds))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def format_relative_time(timestamp: Optional[int], now: Optional[float] = None) -> str:
    """
    Format an epoch timestamp relative to ``now``.

    Args:
        timestamp: Epoch seconds, or None when unknown
        now: Reference time (defaults to the current time)

    Returns:
        Relative age string, or an empty string for unknown timestamps
    """
    if timestamp is None:
        return ""
    if now is None:
        now = time.time()
    return format_time_ago(int(now) - int(timestamp))
