"""Pytest fixtures for git-worktree-tui tests"""
import os
import tempfile
from pathlib import Path
from typing import Optional

import pytest
import git

from git_worktree_tui.config import Config
from git_worktree_tui.models.worktree import CommitInfo, WorktreeRecord, WorktreeStatus


def commit_file(repo: git.Repo, name: str, content: str, message: str) -> str:
    """Write a file in the repo's working tree and commit it. Returns the new hexsha."""
    path = Path(repo.working_tree_dir) / name
    path.write_text(content)
    repo.git.add(name)
    repo.git.commit("-m", message)
    return repo.head.commit.hexsha


def make_record(
    path: str,
    branch: Optional[str] = None,
    commit_time: Optional[int] = None,
    summary: Optional[str] = None,
    is_main: bool = False,
    modified: int = 0,
    **kwargs,
) -> WorktreeRecord:
    """Build an in-memory record without touching git."""
    commit_id = kwargs.pop("commit_id", "0123456789abcdef0123456789abcdef01234567")
    return WorktreeRecord(
        path=path,
        branch=branch,
        commit_id=commit_id,
        commit_id_short=commit_id[:7],
        commit_summary=summary,
        commit_time=commit_time,
        is_main=is_main,
        is_detached=branch is None,
        status=kwargs.pop("status", WorktreeStatus(modified=modified)),
        recent_commits=kwargs.pop("recent_commits", ()),
        **kwargs,
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def config(temp_dir):
    """Configuration with the cache kept inside the test's temp dir."""
    return Config(cache_dir=str(temp_dir / "cache"))


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def worktrees_dir(git_repo):
    """Sibling directory worktrees are created in by default."""
    return Path(git_repo.working_tree_dir).parent / "test_repo-worktrees"


@pytest.fixture
def repo_with_worktrees(git_repo, worktrees_dir):
    """Repository with linked worktrees: feature-x, bugfix-y and a detached one."""
    repo = git_repo
    worktrees_dir.mkdir()

    repo.git.worktree("add", "-b", "feature-x", str(worktrees_dir / "feature-x"))
    repo.git.worktree("add", "-b", "bugfix-y", str(worktrees_dir / "bugfix-y"))
    repo.git.worktree("add", "--detach", str(worktrees_dir / "detached"))

    feature = git.Repo(worktrees_dir / "feature-x")
    commit_file(feature, "feature.txt", "feature\n", "Add feature")
    feature.close()

    bugfix = git.Repo(worktrees_dir / "bugfix-y")
    commit_file(bugfix, "bug.txt", "fixed\n", "Repair crash on startup")
    bugfix.close()

    yield repo


@pytest.fixture
def remote_repo(git_repo, temp_dir):
    """Bare 'origin' that main has been pushed to, with upstream tracking set."""
    remote_path = temp_dir / "origin.git"
    git.Repo.init(remote_path, bare=True).close()
    git_repo.create_remote("origin", str(remote_path))
    git_repo.git.push("-u", "origin", "main")
    git_repo.git.remote("set-head", "origin", "main")
    return remote_path


@pytest.fixture
def sample_records():
    """In-memory records for view and cache tests."""
    return [
        make_record("/work/repo", "main", commit_time=1000, summary="Initial commit", is_main=True),
        make_record(
            "/work/repo-worktrees/feature-x",
            "feature-x",
            commit_time=3000,
            summary="Add feature",
            recent_commits=(CommitInfo("abcdef1", "Add feature", "5m ago"),),
        ),
        make_record(
            "/work/repo-worktrees/bugfix-y",
            "bugfix-y",
            commit_time=2000,
            summary="Repair crash",
            modified=2,
        ),
        make_record("/work/repo-worktrees/detached", None, commit_time=None, summary=None),
    ]
