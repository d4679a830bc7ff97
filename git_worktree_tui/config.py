"""Configuration handling for git-worktree-tui"""

from dataclasses import dataclass, fields
from typing import Optional

SORT_ORDERS = ["name", "status", "recent"]


@dataclass
class Config:
    """Configuration for git-worktree-tui with validation."""

    # Cache behaviour
    cache_ttl: int = 10  # Seconds a cached view counts as fresh
    cache_dir: Optional[str] = None  # None = ~/.git-worktree-tui/cache
    refresh: bool = False  # Ignore the cache at startup

    # Detail fetching
    recent_commits_limit: int = 10
    workers: Optional[int] = None  # Number of parallel workers (None = auto-detect)

    # Display
    sort_order: str = "recent"  # name, status, recent
    show_recent_commits: bool = True
    notification_timeout: float = 5.0

    # Where new worktrees are created (None = <parent>/<repo>-worktrees)
    worktrees_dir: Optional[str] = None

    # Shell integration: selected path is written here on exit
    cwd_file: Optional[str] = None

    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_cache_ttl()
        self._validate_recent_commits_limit()
        self._validate_workers()
        self._validate_sort_order()
        self._validate_notification_timeout()

    def _validate_cache_ttl(self):
        """Validate cache_ttl is not negative."""
        if self.cache_ttl < 0:
            raise ValueError(f"cache_ttl cannot be negative, got {self.cache_ttl}")

    def _validate_recent_commits_limit(self):
        """Validate recent_commits_limit is positive."""
        if self.recent_commits_limit <= 0:
            raise ValueError(
                f"recent_commits_limit must be positive, got {self.recent_commits_limit}"
            )

    def _validate_workers(self):
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def _validate_sort_order(self):
        """Validate sort_order is one of allowed values."""
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"sort_order must be one of {SORT_ORDERS}, got '{self.sort_order}'")

    def _validate_notification_timeout(self):
        if self.notification_timeout <= 0:
            raise ValueError(
                f"notification_timeout must be positive, got {self.notification_timeout}"
            )

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
