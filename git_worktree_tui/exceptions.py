"""Custom exceptions for git-worktree-tui"""

from typing import Optional


class WorktreeTuiError(Exception):
    """Base exception for all git-worktree-tui errors."""
    pass


class RepositoryError(WorktreeTuiError):
    """Raised when a repository cannot be opened or its worktrees enumerated.

    This aborts a whole refresh attempt; the previous view stays on screen.
    """

    def __init__(self, operation: str, path: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        self.message = message

        error_msg = f"Repository operation '{operation}' failed"
        if path:
            error_msg += f" for '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotARepositoryError(RepositoryError):
    """Raised when a path is not inside a git repository."""

    def __init__(self, path: str):
        super().__init__("open", path, "Not a git repository")


class GitOperationError(WorktreeTuiError):
    """Exception raised for errors in mutating git operations."""

    def __init__(self, operation: str, target: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.target = target
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if target:
            error_msg += f" for '{target}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)
