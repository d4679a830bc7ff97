"""Git services: reading worktrees, fetching their details, and changing them."""

from .details import DetailFetcher
from .operations import OperationResult, WorktreeOperations
from .repository import RepositoryReader, discover_repo_root, open_repository

__all__ = [
    "DetailFetcher",
    "OperationResult",
    "RepositoryReader",
    "WorktreeOperations",
    "discover_repo_root",
    "open_repository",
]
