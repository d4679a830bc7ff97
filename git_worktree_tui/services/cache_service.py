"""Cache service for storing the last worktree view of a repository."""
import hashlib
import json
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from git_worktree_tui.constants import CACHE_TTL_SECONDS
from git_worktree_tui.logging_config import APP_DIR, get_logger
from git_worktree_tui.models.worktree import CommitInfo, WorktreeRecord, WorktreeStatus

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = get_logger(__name__)

DEFAULT_CACHE_DIR = APP_DIR / "cache"


@dataclass
class CacheEnvelope:
    """A serialized snapshot of a repository's worktrees.

    ``timestamp`` is whole seconds since the epoch at save time.
    """

    timestamp: int
    repo_root: str
    worktrees: List[WorktreeRecord] = field(default_factory=list)

    @classmethod
    def create(cls, repo_root: str, worktrees: List[WorktreeRecord], now: Optional[float] = None) -> "CacheEnvelope":
        """Stamp ``worktrees`` with the current time."""
        if now is None:
            now = time.time()
        return cls(timestamp=int(now), repo_root=str(repo_root), worktrees=list(worktrees))

    def age_secs(self, now: Optional[float] = None) -> int:
        if now is None:
            now = time.time()
        return max(0, int(now) - self.timestamp)

    def is_fresh(self, now: Optional[float] = None, ttl: int = CACHE_TTL_SECONDS) -> bool:
        """True while ``now - timestamp < ttl``."""
        if now is None:
            now = time.time()
        return int(now) - self.timestamp < ttl


def serialize_record(record: WorktreeRecord) -> Dict[str, Any]:
    """Convert a WorktreeRecord to a cache-friendly dictionary."""
    return {
        "path": record.path,
        "branch": record.branch,
        "commit_id": record.commit_id,
        "commit_id_short": record.commit_id_short,
        "commit_summary": record.commit_summary,
        "commit_time": record.commit_time,
        "is_main": record.is_main,
        "is_current": record.is_current,
        "is_bare": record.is_bare,
        "is_detached": record.is_detached,
        "is_locked": record.is_locked,
        "lock_reason": record.lock_reason,
        "is_prunable": record.is_prunable,
        "status": {
            "modified": record.status.modified,
            "staged": record.status.staged,
            "untracked": record.status.untracked,
            "ahead": record.status.ahead,
            "behind": record.status.behind,
        },
        "recent_commits": [
            {"hash": c.hash, "message": c.message, "relative_age": c.relative_age}
            for c in record.recent_commits
        ],
    }


def deserialize_record(data: Dict[str, Any]) -> WorktreeRecord:
    """Convert a cached dictionary back to a WorktreeRecord.

    Raises:
        KeyError, TypeError, ValueError: If the entry is malformed
    """
    status = data.get("status") or {}
    return WorktreeRecord(
        path=str(data["path"]),
        branch=data.get("branch"),
        commit_id=str(data["commit_id"]),
        commit_id_short=str(data["commit_id_short"]),
        commit_summary=data.get("commit_summary"),
        commit_time=data.get("commit_time"),
        is_main=bool(data.get("is_main", False)),
        is_current=bool(data.get("is_current", False)),
        is_bare=bool(data.get("is_bare", False)),
        is_detached=bool(data.get("is_detached", False)),
        is_locked=bool(data.get("is_locked", False)),
        lock_reason=data.get("lock_reason"),
        is_prunable=bool(data.get("is_prunable", False)),
        status=WorktreeStatus(
            modified=int(status.get("modified", 0)),
            staged=int(status.get("staged", 0)),
            untracked=int(status.get("untracked", 0)),
            ahead=int(status.get("ahead", 0)),
            behind=int(status.get("behind", 0)),
        ),
        recent_commits=tuple(
            CommitInfo(hash=c["hash"], message=c["message"], relative_age=c["relative_age"])
            for c in data.get("recent_commits", [])
        ),
    )


class CacheService:
    """Manages the on-disk cache of one repository's worktree view."""

    def __init__(self, repo_root: str, cache_dir: Optional[str] = None):
        """Initialize cache service for a repository.

        Args:
            repo_root: Path to the repository root
            cache_dir: Directory holding cache files (default ~/.git-worktree-tui/cache)
        """
        self.repo_root = str(repo_root)
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir else DEFAULT_CACHE_DIR
        self.cache_file = self.cache_dir / f"{self._get_repo_hash()}.json"

    def _get_repo_hash(self) -> str:
        """Generate a unique hash for the repository path."""
        return hashlib.md5(self.repo_root.encode()).hexdigest()

    @contextmanager
    def _acquire_cache_lock(self, file_handle, operation: str = "read"):
        """Acquire file lock for cache operations.

        Args:
            file_handle: Open file handle to lock
            operation: Type of operation ("read" or "write")

        Yields:
            None when lock is acquired
        """
        if not HAS_FCNTL:
            yield
            return

        lock_type = fcntl.LOCK_EX if operation == "write" else fcntl.LOCK_SH
        fcntl.flock(file_handle.fileno(), lock_type)
        try:
            yield
        finally:
            try:
                fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)
            except OSError as e:
                logger.debug(f"Error releasing lock: {e}")

    def _validate_cache_data(self, cache_data: Any) -> bool:
        """Check the envelope's shape before trusting it."""
        if not isinstance(cache_data, dict):
            logger.warning("Cache data is not a dictionary")
            return False

        for key in ("timestamp", "repo_root", "worktrees"):
            if key not in cache_data:
                logger.warning(f"Cache missing '{key}' key")
                return False

        if not isinstance(cache_data["timestamp"], (int, float)) or isinstance(cache_data["timestamp"], bool):
            logger.warning("Cache 'timestamp' is not a number")
            return False

        if not isinstance(cache_data["worktrees"], list):
            logger.warning("Cache 'worktrees' is not a list")
            return False

        return True

    def load(self) -> Optional[CacheEnvelope]:
        """Load the cached envelope for this repository.

        Returns:
            The envelope, or None if the file is missing, unreadable, malformed,
            or belongs to a different repository root
        """
        if not self.cache_file.exists():
            logger.debug("No cache file found")
            return None

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                with self._acquire_cache_lock(f, operation="read"):
                    cache_data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in cache file: {e}")
            return None
        except OSError as e:
            logger.warning(f"Failed to load cache: {e}")
            return None

        if not self._validate_cache_data(cache_data):
            logger.warning("Cache validation failed, ignoring cache")
            return None

        if cache_data["repo_root"] != self.repo_root:
            logger.debug(f"Cache belongs to {cache_data['repo_root']}, not {self.repo_root}")
            return None

        try:
            worktrees = [deserialize_record(entry) for entry in cache_data["worktrees"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to deserialize cached worktrees: {e}")
            return None

        logger.debug(f"Loaded cache with {len(worktrees)} worktrees")
        return CacheEnvelope(
            timestamp=int(cache_data["timestamp"]),
            repo_root=cache_data["repo_root"],
            worktrees=worktrees,
        )

    def save(self, envelope: CacheEnvelope) -> bool:
        """Write the envelope using an atomic replace under an exclusive lock.

        Never raises; failures are logged.

        Returns:
            True if the cache file was written
        """
        cache_data = {
            "timestamp": envelope.timestamp,
            "repo_root": envelope.repo_root,
            "worktrees": [serialize_record(r) for r in envelope.worktrees],
        }

        temp_file = self.cache_file.with_suffix(".tmp")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

            with open(temp_file, "w", encoding="utf-8") as f:
                with self._acquire_cache_lock(f, operation="write"):
                    json.dump(cache_data, f, indent=2)
                    f.flush()

            # Atomic rename (POSIX systems guarantee atomicity)
            temp_file.replace(self.cache_file)
            logger.debug(f"Saved cache with {len(envelope.worktrees)} worktrees")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save cache: {e}")
            return False
        finally:
            if temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError:
                    pass

    def clear(self) -> None:
        """Clear all cached data for this repository."""
        try:
            if self.cache_file.exists():
                self.cache_file.unlink()
                logger.info("Cache cleared")
        except OSError as e:
            logger.warning(f"Failed to clear cache: {e}")
