"""Repository reader: opens a repository and enumerates its worktrees."""

import os
from typing import Any, Dict, List, Optional

import git

from git_worktree_tui.exceptions import NotARepositoryError, RepositoryError
from git_worktree_tui.logging_config import get_logger
from git_worktree_tui.models.branch import BranchRef
from git_worktree_tui.models.worktree import (
    HeadInfo,
    LinkedOrigin,
    MainOrigin,
    WorktreeIdentity,
    WorktreeOrigin,
)

logger = get_logger(__name__)


def _git_error_message(error: git.exc.GitCommandError) -> str:
    """Extract the most useful text from a GitCommandError."""
    stderr = (error.stderr or "").strip() if hasattr(error, "stderr") else ""
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip().strip("'").strip()
    return stderr or str(error)


def open_repository(path: str, search_parent_directories: bool = False) -> git.Repo:
    """Open a repository handle.

    Args:
        path: Path to the repository (or any directory inside it when
            ``search_parent_directories`` is set)
        search_parent_directories: Walk up from ``path`` to find the repository

    Returns:
        git.Repo: A fresh repository instance

    Raises:
        NotARepositoryError: If ``path`` is not (inside) a git repository
        RepositoryError: On any other failure to open it
    """
    try:
        return git.Repo(path, search_parent_directories=search_parent_directories)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise NotARepositoryError(path)
    except Exception as e:
        raise RepositoryError("open", path, str(e))


def parse_worktree_porcelain(output: str) -> List[Dict[str, Any]]:
    """Parse ``git worktree list --porcelain`` output into raw entries.

    Format (one block per worktree, blocks separated by blank lines)::

        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>      (or "detached", or "bare")
        locked [reason]
        prunable [reason]
    """
    entries: List[Dict[str, Any]] = []
    current: Dict[str, Any] = {}

    for raw_line in output.split("\n"):
        line = raw_line.rstrip("\r")

        if not line.strip():
            if current.get("path"):
                entries.append(current)
            current = {}
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            if current.get("path"):
                entries.append(current)
            current = {"path": value}
        elif key == "HEAD":
            current["head"] = value
        elif key == "branch":
            if value.startswith("refs/heads/"):
                current["branch"] = value[len("refs/heads/"):]
            else:
                current["branch"] = value
        elif key == "detached":
            current["detached"] = True
        elif key == "bare":
            current["bare"] = True
        elif key == "locked":
            current["locked"] = True
            current["lock_reason"] = value or None
        elif key == "prunable":
            current["prunable"] = True

    # Handle last entry if no trailing blank line
    if current.get("path"):
        entries.append(current)

    return entries


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.realpath(a)) == os.path.normcase(os.path.realpath(b))


def _main_worktree_path(repo: git.Repo) -> str:
    """Path of the main worktree: the working directory, or the repository itself if bare."""
    if repo.bare:
        return os.path.realpath(repo.common_dir)
    try:
        # The first porcelain entry is always the main worktree, even when the
        # handle was opened from inside a linked one
        entries = parse_worktree_porcelain(repo.git.worktree("list", "--porcelain"))
        if entries:
            return os.path.realpath(entries[0]["path"])
    except git.exc.GitCommandError as e:
        logger.debug(f"Could not list worktrees to locate main worktree: {_git_error_message(e)}")
    return os.path.realpath(os.path.dirname(repo.common_dir.rstrip(os.sep)))


def discover_repo_root(path: str) -> str:
    """Find the root of the repository containing ``path``.

    Running from inside a linked worktree still yields the main worktree's
    directory, so every worktree of a repository shares one cache entry.

    Raises:
        NotARepositoryError: If ``path`` is not inside a git repository
    """
    repo = open_repository(path, search_parent_directories=True)
    try:
        root = _main_worktree_path(repo)
    finally:
        repo.close()
    logger.debug(f"Repository root for {path}: {root}")
    return root


class RepositoryReader:
    """Reads worktree identities for one repository.

    Every public method takes or opens its own ``git.Repo`` handle; nothing
    is shared between threads.
    """

    def __init__(self, repo_root: str):
        """Initialize the reader.

        Args:
            repo_root: Path to the repository's main worktree (or bare repository)
        """
        self.repo_root = repo_root

    def open(self) -> git.Repo:
        """Open a fresh handle on the repository root."""
        return open_repository(self.repo_root)

    @staticmethod
    def head_of(repo: git.Repo) -> HeadInfo:
        """Resolve HEAD to a branch name (None when detached) and a commit id."""
        head = repo.head
        branch: Optional[str] = None
        if not head.is_detached:
            branch = head.ref.name

        try:
            commit_id = head.commit.hexsha
        except ValueError:
            # Unborn branch: HEAD points at a ref with no commits yet
            commit_id = ""

        return HeadInfo(branch=branch, commit_id=commit_id)

    def list_linked_worktrees(self, repo: git.Repo) -> List[WorktreeIdentity]:
        """List worktrees other than the main one.

        Raises:
            RepositoryError: If git cannot enumerate the worktrees
        """
        try:
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise RepositoryError("list_worktrees", self.repo_root, _git_error_message(e))

        main_path = _main_worktree_path(repo)
        identities = []
        for index, entry in enumerate(parse_worktree_porcelain(output)):
            path = entry["path"]
            if index == 0 or _same_path(path, main_path):
                continue

            branch = entry.get("branch")
            is_detached = bool(entry.get("detached")) or not branch
            identities.append(
                WorktreeIdentity(
                    path=path,
                    branch=None if is_detached else branch,
                    commit_id=entry.get("head", ""),
                    is_detached=is_detached,
                    is_locked=bool(entry.get("locked")),
                    lock_reason=entry.get("lock_reason"),
                )
            )

        logger.debug(f"Found {len(identities)} linked worktrees")
        return identities

    def main_identity(self, repo: git.Repo) -> WorktreeIdentity:
        """Synthesize the main worktree's identity from the repository handle."""
        path = _main_worktree_path(repo)
        try:
            if repo.bare or _same_path(repo.working_tree_dir, path):
                head = self.head_of(repo)
            else:
                # Handle was opened inside a linked worktree; HEAD there is not main's
                main_repo = open_repository(path)
                try:
                    head = self.head_of(main_repo)
                finally:
                    main_repo.close()
        except RepositoryError:
            raise
        except Exception as e:
            raise RepositoryError("read_head", path, str(e))

        return WorktreeIdentity(
            path=path,
            branch=head.branch,
            commit_id=head.commit_id,
            is_detached=head.branch is None,
            is_bare=repo.bare,
        )

    def read_worktree_origins(self, repo: Optional[git.Repo] = None) -> List[WorktreeOrigin]:
        """Main worktree first (exactly once), then every linked worktree.

        Raises:
            RepositoryError: If the repository cannot be opened or enumerated
        """
        owns_repo = repo is None
        if repo is None:
            repo = self.open()
        try:
            origins: List[WorktreeOrigin] = [MainOrigin(self.main_identity(repo))]
            origins.extend(LinkedOrigin(identity) for identity in self.list_linked_worktrees(repo))
        finally:
            if owns_repo:
                repo.close()

        for origin in origins:
            logger.debug(f"  {type(origin).__name__}: {origin.identity.path}")
        return origins

    def list_branches(self) -> List[BranchRef]:
        """Local branches followed by remote-tracking branches (``*/HEAD`` excluded)."""
        repo = self.open()
        try:
            try:
                current = None if repo.head.is_detached else repo.head.ref.name
            except Exception:
                current = None

            branches = [
                BranchRef(name=head.name, is_current=head.name == current)
                for head in repo.heads
            ]
            for remote in repo.remotes:
                try:
                    remote_refs = list(remote.refs)
                except AssertionError:
                    # GitPython asserts when a remote has never been fetched
                    continue
                for ref in remote_refs:
                    if ref.name.endswith("/HEAD"):
                        continue
                    branches.append(BranchRef(name=ref.name, is_remote=True))
            return branches
        finally:
            repo.close()

    def detect_main_branch(self) -> str:
        """Name of the default branch: origin/HEAD's target, else main, else master."""
        repo = self.open()
        try:
            try:
                target = repo.git.symbolic_ref("refs/remotes/origin/HEAD")
                prefix = "refs/remotes/origin/"
                if target.startswith(prefix):
                    return target[len(prefix):]
            except git.exc.GitCommandError:
                pass

            if "main" in [head.name for head in repo.heads]:
                return "main"
            return "master"
        finally:
            repo.close()
