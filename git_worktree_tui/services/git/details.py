"""Detail fetcher: per-worktree status, upstream divergence and history."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Tuple

import git

from git_worktree_tui.constants import RECENT_COMMITS_LIMIT, SHORT_HASH_LENGTH
from git_worktree_tui.formatters.date import format_time_ago
from git_worktree_tui.logging_config import get_logger
from git_worktree_tui.models.worktree import CommitInfo, WorktreeDetails, WorktreeStatus
from git_worktree_tui.utils.threading import get_optimal_worker_count

logger = get_logger(__name__)


def classify_porcelain_status(output: str) -> WorktreeStatus:
    """Count changed paths from ``git status --porcelain`` output.

    Each path lands in exactly one counter: ``??`` is untracked, a change
    recorded in the index (first column) is staged, anything else is
    modified.
    """
    modified = staged = untracked = 0

    for line in output.split("\n"):
        if len(line) < 2:
            continue

        if line.startswith("??"):
            untracked += 1
        elif line.startswith("!!"):
            continue  # Ignored files only appear with --ignored
        elif line[0] != " ":
            staged += 1
        else:
            modified += 1

    return WorktreeStatus(modified=modified, staged=staged, untracked=untracked)


class DetailFetcher:
    """Fetches details for many worktrees at once, one thread per worktree.

    A failure in one worktree never affects the others: that worktree simply
    gets empty details.
    """

    def __init__(
        self,
        recent_commits_limit: int = RECENT_COMMITS_LIMIT,
        workers: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the fetcher.

        Args:
            recent_commits_limit: Maximum number of recent commits per worktree
            workers: Worker count (None = auto-detect)
            clock: Source of "now" for relative commit ages
        """
        self.recent_commits_limit = recent_commits_limit
        self.workers = workers
        self.clock = clock

    @staticmethod
    def get_status(repo: git.Repo) -> WorktreeStatus:
        """File change counts for the worktree ``repo`` is opened on."""
        output = repo.git.status("--porcelain", "--untracked-files=all")
        return classify_porcelain_status(output)

    @staticmethod
    def get_ahead_behind(repo: git.Repo) -> Tuple[int, int]:
        """Commits ahead of / behind the configured upstream; (0, 0) without one."""
        head = repo.head
        if head.is_detached or not head.is_valid():
            return 0, 0

        tracking = head.ref.tracking_branch()
        if tracking is None or not tracking.is_valid():
            return 0, 0

        upstream = tracking.path
        ahead = sum(1 for _ in repo.iter_commits(f"{upstream}..HEAD"))
        behind = sum(1 for _ in repo.iter_commits(f"HEAD..{upstream}"))
        return ahead, behind

    @staticmethod
    def get_commit_info(repo: git.Repo) -> Tuple[Optional[str], Optional[int]]:
        """Summary line and authoring time of HEAD, or (None, None) when unborn."""
        if not repo.head.is_valid():
            return None, None
        commit = repo.head.commit
        return commit.summary, int(commit.authored_date)

    def get_recent_commits(self, repo: git.Repo, now: float) -> List[CommitInfo]:
        """Newest-first history of HEAD, at most ``recent_commits_limit`` entries."""
        if not repo.head.is_valid():
            return []

        commits = []
        for commit in repo.iter_commits("HEAD", max_count=self.recent_commits_limit):
            commits.append(
                CommitInfo(
                    hash=commit.hexsha[:SHORT_HASH_LENGTH],
                    message=commit.summary,
                    relative_age=format_time_ago(int(now) - int(commit.authored_date)),
                )
            )
        return commits

    def fetch_one(self, path: str, now: Optional[float] = None) -> WorktreeDetails:
        """Fetch details for a single worktree.

        Opens its own handle at ``path``. Errors propagate; see :meth:`fetch_safe`.
        """
        if now is None:
            now = self.clock()

        repo = git.Repo(path)
        try:
            status = self.get_status(repo)
            ahead, behind = self.get_ahead_behind(repo)
            summary, commit_time = self.get_commit_info(repo)
            recent_commits = self.get_recent_commits(repo, now)
        finally:
            repo.close()

        return WorktreeDetails(
            status=WorktreeStatus(
                modified=status.modified,
                staged=status.staged,
                untracked=status.untracked,
                ahead=ahead,
                behind=behind,
            ),
            commit_summary=summary,
            commit_time=commit_time,
            recent_commits=tuple(recent_commits),
        )

    def fetch_safe(self, path: str, now: Optional[float] = None) -> WorktreeDetails:
        """Like :meth:`fetch_one`, but any error yields empty details."""
        try:
            return self.fetch_one(path, now)
        except Exception as e:
            logger.debug(f"Detail fetch failed for {path}: {e}")
            return WorktreeDetails()

    def fetch_all(self, paths: List[str]) -> Dict[str, WorktreeDetails]:
        """Fetch details for every path in parallel and wait for all of them.

        Args:
            paths: Worktree roots to inspect

        Returns:
            Mapping of path to details; every input path has an entry
        """
        if not paths:
            return {}

        now = self.clock()
        max_workers = get_optimal_worker_count(self.workers, task_count=len(paths))
        logger.debug(f"Fetching details for {len(paths)} worktrees with {max_workers} workers")

        results: Dict[str, WorktreeDetails] = {}
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="wt-details") as executor:
            future_to_path = {
                executor.submit(self.fetch_safe, path, now): path for path in paths
            }

            for future in as_completed(future_to_path):
                path = future_to_path[future]
                try:
                    results[path] = future.result()
                except Exception as e:
                    logger.error(f"Error fetching details for {path}: {e}")
                    results[path] = WorktreeDetails()

        return results
