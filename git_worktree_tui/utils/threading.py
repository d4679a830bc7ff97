"""Threading utilities for sizing the detail-fetch worker pool."""

import os
import sys
from typing import Dict, Any, Optional


def is_free_threading_enabled() -> bool:
    """Detect if Python is running with free-threading enabled.

    Returns:
        True if running on Python 3.13+ with GIL disabled (free-threading mode)
        False if running with GIL enabled or Python < 3.13
    """
    # sys._is_gil_enabled() exists on 3.13+ and returns False when the GIL is disabled
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    if is_gil_enabled is None:
        return False
    return not is_gil_enabled()


def get_python_threading_mode() -> str:
    """Get a description of the current threading mode.

    Returns:
        "free-threading", "GIL-enabled", or "GIL-enabled (Python < 3.13)"
    """
    if not hasattr(sys, "_is_gil_enabled"):
        return "GIL-enabled (Python < 3.13)"
    return "free-threading" if is_free_threading_enabled() else "GIL-enabled"


def get_optimal_worker_count(user_specified: Optional[int] = None, task_count: Optional[int] = None) -> int:
    """Calculate the worker count for a batch of per-worktree tasks.

    Args:
        user_specified: User-specified worker count, if provided
        task_count: Number of tasks in the batch; the pool never exceeds it

    Returns:
        Number of workers to use (at least 1)
    """
    if user_specified is not None and user_specified > 0:
        workers = user_specified
    else:
        cpu_count = os.cpu_count() or 1
        if is_free_threading_enabled():
            # Free-threading: true parallelism, allow more workers
            workers = min(64, cpu_count * 2)
        else:
            # Each task mostly waits on git subprocesses: CPU_count + 4, capped at 32
            workers = min(32, cpu_count + 4)

    if task_count is not None:
        workers = min(workers, max(1, task_count))
    return max(1, workers)


def get_threading_info() -> Dict[str, Any]:
    """Get information about the Python threading configuration.

    Returns:
        Dictionary containing threading mode, worker count, and other details
    """
    return {
        "mode": get_python_threading_mode(),
        "free_threading": is_free_threading_enabled(),
        "cpu_count": os.cpu_count() or 1,
        "optimal_workers": get_optimal_worker_count(),
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
    }
