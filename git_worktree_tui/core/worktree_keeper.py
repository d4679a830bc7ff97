"""Core pipeline: read worktrees, fetch their details, cache the result."""

import os
from typing import List, Optional, Union

from git_worktree_tui.config import Config
from git_worktree_tui.logging_config import get_logger
from git_worktree_tui.models.branch import BranchRef
from git_worktree_tui.models.worktree import WorktreeRecord, create_record, with_current_path
from git_worktree_tui.services.cache_service import CacheEnvelope, CacheService
from git_worktree_tui.services.git import DetailFetcher, RepositoryReader, WorktreeOperations

logger = get_logger(__name__)


class WorktreeKeeper:
    """Main class tying together the services for one repository.

    The repository root and the caller's working directory are explicit
    values; nothing here consults the process's current directory.
    """

    def __init__(self, repo_root: str, config: Union[Config, dict], current_path: Optional[str] = None):
        """Initialize WorktreeKeeper.

        Args:
            repo_root: Path to the repository's main worktree
            config: Configuration dict or Config object
            current_path: Directory the user launched from (marks the current worktree)
        """
        if isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config
        self.repo_root = os.path.abspath(repo_root)
        self.current_path = current_path

        self.reader = RepositoryReader(self.repo_root)
        self.fetcher = DetailFetcher(
            recent_commits_limit=config.recent_commits_limit,
            workers=config.workers,
        )
        self.cache = CacheService(self.repo_root, cache_dir=config.cache_dir)
        self.operations = WorktreeOperations(self.repo_root, worktrees_dir=config.worktrees_dir)

        logger.debug(f"WorktreeKeeper initialized for {self.repo_root} (cwd {current_path})")

    @property
    def repo_name(self) -> str:
        return os.path.basename(self.repo_root.rstrip(os.sep))

    def fetch_all_worktrees(self) -> List[WorktreeRecord]:
        """Build fresh records for every worktree.

        Reads identities, then fetches details for all inspectable worktrees
        in parallel and joins them back in discovery order.

        Raises:
            RepositoryError: If the repository cannot be read
        """
        origins = self.reader.read_worktree_origins()
        records = [create_record(origin, self.current_path) for origin in origins]

        paths = [r.path for r in records if r.needs_details]
        details = self.fetcher.fetch_all(paths)

        result = [
            record.with_details(details[record.path]) if record.path in details else record
            for record in records
        ]
        logger.info(f"Fetched {len(result)} worktrees ({len(paths)} inspected)")
        return result

    def load_cached(self) -> Optional[CacheEnvelope]:
        """Cached envelope with ``is_current`` recomputed for this session."""
        envelope = self.cache.load()
        if envelope is None:
            return None
        envelope.worktrees = with_current_path(envelope.worktrees, self.current_path)
        return envelope

    def save_cache(self, records: List[WorktreeRecord]) -> bool:
        return self.cache.save(CacheEnvelope.create(self.repo_root, records))

    def clear_cache(self) -> None:
        self.cache.clear()

    def list_branches(self) -> List[BranchRef]:
        """Branches offered when creating a worktree; empty if they cannot be read."""
        try:
            return self.reader.list_branches()
        except Exception as e:
            logger.warning(f"Could not list branches: {e}")
            return []

    def detect_main_branch(self) -> str:
        try:
            return self.reader.detect_main_branch()
        except Exception as e:
            logger.debug(f"Could not detect main branch: {e}")
            return "main"
