"""Mutating worktree operations: create, remove, lock, merge, sync."""

import os
from dataclasses import dataclass
from typing import List, Optional

import git

from git_worktree_tui.constants import WORKTREES_DIR_SUFFIX
from git_worktree_tui.exceptions import GitOperationError
from git_worktree_tui.logging_config import get_logger
from git_worktree_tui.models.worktree import WorktreeRecord

logger = get_logger(__name__)

DEFAULT_BRANCH_NAMES = ("main", "master")


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutating operation, shown to the user as-is."""

    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "OperationResult":
        return cls(True, message)

    @classmethod
    def failed(cls, message: str) -> "OperationResult":
        return cls(False, message)


def _command_output(error: git.exc.GitCommandError) -> str:
    """Combined stdout/stderr text of a failed git command, stripped of GitPython's framing."""
    parts = []
    for stream in (getattr(error, "stderr", ""), getattr(error, "stdout", "")):
        text = (stream or "").strip()
        for prefix in ("stderr:", "stdout:"):
            if text.startswith(prefix):
                text = text[len(prefix):].strip().strip("'").strip()
        if text:
            parts.append(text)
    return "\n".join(parts)


def find_branch_worktree(records: List[WorktreeRecord], branch: str) -> Optional[WorktreeRecord]:
    """The worktree that has ``branch`` checked out, if any."""
    for record in records:
        if record.branch == branch:
            return record
    return None


def merge_targets(
    records: List[WorktreeRecord],
    source_branch: Optional[str] = None,
    default_branch: Optional[str] = None,
) -> List[str]:
    """Branches a merge can land in: every branch checked out in a worktree.

    ``default_branch`` comes first, then main/master, the rest alphabetically;
    ``source_branch`` is left out.
    """
    seen = set()
    branches = []
    for record in records:
        if record.branch and record.branch not in seen and record.branch != source_branch:
            seen.add(record.branch)
            branches.append(record.branch)

    def sort_key(name: str):
        if name == default_branch:
            return (0, 0, name)
        if name in DEFAULT_BRANCH_NAMES:
            return (1, DEFAULT_BRANCH_NAMES.index(name), name)
        return (2, 0, name)

    return sorted(branches, key=sort_key)


class WorktreeOperations:
    """Runs git commands that change worktrees.

    Every public method returns an :class:`OperationResult`; none of them
    raise for git failures.
    """

    def __init__(self, repo_root: str, worktrees_dir: Optional[str] = None):
        """Initialize the service.

        Args:
            repo_root: Path to the repository's main worktree
            worktrees_dir: Where new worktrees go (None = ``<parent>/<repo>-worktrees``)
        """
        self.repo_root = repo_root
        self._worktrees_dir = worktrees_dir

    def _get_repo(self, path: Optional[str] = None) -> git.Repo:
        """Fresh repository handle on ``path`` (defaults to the repository root)."""
        return git.Repo(path or self.repo_root)

    def _run(self, operation: str, target: Optional[str], *args: str, cwd: Optional[str] = None) -> str:
        """Run ``git <args>`` in ``cwd``.

        Raises:
            GitOperationError: With git's output as the message
        """
        logger.debug(f"git {' '.join(args)} (in {cwd or self.repo_root})")
        try:
            repo = self._get_repo(cwd)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitOperationError(operation, target, f"Not a git worktree: {e}")

        try:
            return repo.git.execute(["git", *args])
        except git.exc.GitCommandError as e:
            output = _command_output(e)
            status = getattr(e, "status", "unknown")
            raise GitOperationError(operation, target, output or f"git exited with code {status}")
        finally:
            repo.close()

    def get_worktrees_dir(self) -> str:
        """Directory new worktrees are created in."""
        if self._worktrees_dir:
            return os.path.abspath(os.path.expanduser(self._worktrees_dir))
        root = os.path.abspath(self.repo_root).rstrip(os.sep)
        parent = os.path.dirname(root) or root
        return os.path.join(parent, f"{os.path.basename(root)}{WORKTREES_DIR_SUFFIX}")

    def worktree_path_for(self, name: str) -> str:
        return os.path.join(self.get_worktrees_dir(), name)

    def add_worktree(
        self,
        name: str,
        base_branch: Optional[str] = None,
        checkout_existing: bool = False,
    ) -> OperationResult:
        """Create a worktree named ``name`` under the worktrees directory.

        Args:
            name: Directory name, and the new branch's name unless checking out
            base_branch: Start point for the new branch, or the branch to check out
            checkout_existing: Check out ``base_branch`` instead of creating a branch

        Returns:
            OperationResult: The message names the worktree on success
        """
        name = name.strip()
        if not name:
            return OperationResult.failed("Worktree name cannot be empty")
        if checkout_existing and not base_branch:
            return OperationResult.failed("Select a branch to check out")

        worktrees_dir = self.get_worktrees_dir()
        try:
            os.makedirs(worktrees_dir, exist_ok=True)
        except OSError as e:
            return OperationResult.failed(f"Failed to create worktrees dir: {e}")

        path = os.path.join(worktrees_dir, name)
        if checkout_existing:
            args = ["worktree", "add", path, base_branch]
        else:
            args = ["worktree", "add", "-b", name, path]
            if base_branch:
                args.append(base_branch)

        try:
            self._run("add_worktree", name, *args)
        except GitOperationError as e:
            logger.error(f"Failed to create worktree {name}: {e}")
            return OperationResult.failed(f"Failed: {e.message}")

        logger.info(f"Created worktree at {path}")
        return OperationResult.ok(f"Created worktree: {name}")

    def remove_worktree(self, record: WorktreeRecord) -> OperationResult:
        """Remove a linked worktree; dirty ones are removed with ``--force``."""
        if record.is_main:
            return OperationResult.failed("Cannot delete main worktree")

        args = ["worktree", "remove"]
        if not record.status.is_clean:
            args.append("--force")
        args.append(record.path)

        try:
            self._run("remove_worktree", record.path, *args)
        except GitOperationError as e:
            logger.error(f"Failed to remove worktree at {record.path}: {e}")
            return OperationResult.failed(f"Failed: {e.message}")

        logger.info(f"Removed worktree at {record.path}")
        return OperationResult.ok(f"Deleted worktree: {record.branch or record.path}")

    def lock_worktree(self, record: WorktreeRecord, reason: Optional[str] = None) -> OperationResult:
        args = ["worktree", "lock"]
        if reason:
            args.extend(["--reason", reason])
        args.append(record.path)
        try:
            self._run("lock_worktree", record.path, *args)
        except GitOperationError as e:
            return OperationResult.failed(f"Failed: {e.message}")
        return OperationResult.ok(f"Locked worktree: {record.display_name}")

    def unlock_worktree(self, record: WorktreeRecord) -> OperationResult:
        try:
            self._run("unlock_worktree", record.path, "worktree", "unlock", record.path)
        except GitOperationError as e:
            return OperationResult.failed(f"Failed: {e.message}")
        return OperationResult.ok(f"Unlocked worktree: {record.display_name}")

    def toggle_lock(self, record: WorktreeRecord) -> OperationResult:
        """Lock an unlocked worktree, unlock a locked one."""
        if record.is_locked:
            return self.unlock_worktree(record)
        return self.lock_worktree(record)

    def merge(self, source_branch: Optional[str], target_branch: str, records: List[WorktreeRecord]) -> OperationResult:
        """Merge ``source_branch`` into ``target_branch`` inside the worktree holding the target.

        Conflicts are left in place and reported as a failure naming the
        worktree to resolve them in.
        """
        if not source_branch:
            return OperationResult.failed("Cannot merge from a detached HEAD")
        if source_branch == target_branch:
            return OperationResult.failed("Cannot merge branch into itself")

        target = find_branch_worktree(records, target_branch)
        if target is None:
            return OperationResult.failed(f"Branch {target_branch} is not active in any worktree")

        try:
            self._run("merge", target_branch, "merge", source_branch, "--no-edit", cwd=target.path)
        except GitOperationError as e:
            if e.message and "conflict" in e.message.lower():
                logger.warning(f"Merge of {source_branch} into {target_branch} left conflicts in {target.path}")
                return OperationResult.failed(f"Conflict! Resolve in: {target.path}")
            return OperationResult.failed(f"Merge failed: {e.message}")

        logger.info(f"Merged {source_branch} into {target_branch}")
        return OperationResult.ok(f"Merged {source_branch} into {target_branch}")

    def pull(self, record: WorktreeRecord) -> OperationResult:
        try:
            self._run("pull", record.path, "pull", cwd=record.path)
        except GitOperationError as e:
            return OperationResult.failed(f"Pull failed: {e.message}")
        return OperationResult.ok(f"Pulled {record.branch or 'worktree'}")

    def push(self, record: WorktreeRecord) -> OperationResult:
        try:
            self._run("push", record.path, "push", cwd=record.path)
        except GitOperationError as e:
            return OperationResult.failed(f"Push failed: {e.message}")
        return OperationResult.ok(f"Pushed {record.branch or 'worktree'}")

    def fetch_all(self) -> OperationResult:
        """Fetch every remote, pruning deleted remote branches."""
        try:
            self._run("fetch", None, "fetch", "--all", "--prune")
        except GitOperationError as e:
            return OperationResult.failed(f"Fetch failed: {e.message}")
        return OperationResult.ok("Fetched latest from remote")

    def prune(self) -> OperationResult:
        """Drop administrative data for worktrees whose directories are gone."""
        try:
            self._run("prune_worktrees", None, "worktree", "prune")
        except GitOperationError as e:
            return OperationResult.failed(f"Prune failed: {e.message}")
        logger.info("Pruned stale worktree metadata")
        return OperationResult.ok("Pruned stale worktrees")
