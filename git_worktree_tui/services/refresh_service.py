"""Refresh coordinator: cache-first startup and one background fetch at a time.

Everything here except :meth:`RefreshCoordinator.fetch` runs on the UI loop.
``fetch`` is the blocking part and is run off the loop by the caller; its
result comes back through the UI's message queue and is handed to
``apply_result`` (or ``fetch_failed``) exactly once.
"""

import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from git_worktree_tui.constants import CACHE_TTL_SECONDS
from git_worktree_tui.exceptions import RepositoryError
from git_worktree_tui.logging_config import get_logger
from git_worktree_tui.models.worktree import WorktreeRecord
from git_worktree_tui.services.view_index import WorktreeView

if TYPE_CHECKING:
    from git_worktree_tui.core.worktree_keeper import WorktreeKeeper

logger = get_logger(__name__)


class LoadingState(Enum):
    IDLE = "idle"
    LOADING = "loading"


class RefreshCoordinator:
    """Keeps the view fed with worktree records.

    States:
        IDLE: the view shows a fresh collection
        LOADING: the view is empty or provisional; a fetch is running or the
            last one failed

    ``in_flight`` is True exactly while a fetch has been started and its
    outcome has not been applied yet.
    """

    def __init__(
        self,
        keeper: "WorktreeKeeper",
        view: WorktreeView,
        ttl: int = CACHE_TTL_SECONDS,
        use_cache: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.keeper = keeper
        self.view = view
        self.ttl = ttl
        self.use_cache = use_cache
        self.clock = clock

        self.state = LoadingState.LOADING
        self.in_flight = False
        self.cache_age: Optional[int] = None
        self.last_error: Optional[str] = None
        # Path to select once the next result lands (e.g. a just-created worktree)
        self.pending_select_path: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.state is LoadingState.LOADING

    def start(self) -> bool:
        """Seed the view from the cache.

        Returns:
            True if a background fetch must be started now; ``in_flight`` is
            already set in that case
        """
        envelope = self.keeper.load_cached() if self.use_cache else None

        if envelope is not None:
            now = self.clock()
            self.view.replace(envelope.worktrees)
            self.cache_age = envelope.age_secs(now)
            if envelope.is_fresh(now, self.ttl):
                logger.info(f"Using fresh cache ({self.cache_age}s old, {len(envelope.worktrees)} worktrees)")
                self.state = LoadingState.IDLE
                return False
            logger.info(f"Cache is stale ({self.cache_age}s old), showing it while refreshing")
        else:
            logger.info("No usable cache, loading worktrees")

        self.state = LoadingState.LOADING
        self.in_flight = True
        return True

    def request_refresh(self) -> bool:
        """Ask for a new fetch.

        Returns:
            True if accepted (caller must start the fetch); False, and nothing
            changes, while another fetch is in flight
        """
        if self.in_flight:
            logger.debug("Refresh requested while a fetch is in flight; ignoring")
            return False
        self.state = LoadingState.LOADING
        self.in_flight = True
        return True

    def fetch(self) -> Optional[List[WorktreeRecord]]:
        """Run the full pipeline. Blocking; call it off the UI loop.

        Returns:
            The new records, or None if the repository could not be read
        """
        try:
            return self.keeper.fetch_all_worktrees()
        except RepositoryError as e:
            logger.warning(f"Refresh failed: {e}")
            return None

    def apply_result(self, records: List[WorktreeRecord]) -> None:
        """Install a finished fetch: swap the collection, persist it, go IDLE."""
        self.view.replace(records)
        if self.pending_select_path is not None:
            self.view.select_path(self.pending_select_path)
            self.pending_select_path = None

        self.keeper.save_cache(records)
        self.cache_age = 0
        self.last_error = None
        self.state = LoadingState.IDLE
        self.in_flight = False

    def fetch_failed(self, error: Optional[str] = None) -> None:
        """Record a failed fetch. The previous view stays; the next refresh may retry."""
        self.last_error = error or "Failed to read worktrees"
        self.in_flight = False
        self.state = LoadingState.LOADING
