"""Tests for the repository reader."""

from pathlib import Path

import git
import pytest

from git_worktree_tui.exceptions import NotARepositoryError, RepositoryError
from git_worktree_tui.models.worktree import LinkedOrigin, MainOrigin
from git_worktree_tui.services.git.repository import (
    RepositoryReader,
    discover_repo_root,
    open_repository,
    parse_worktree_porcelain,
)

PORCELAIN = """worktree /srv/repo
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /srv/repo-worktrees/feature/nested
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature/nested
locked moved to usb drive

worktree /srv/repo-worktrees/detached
HEAD 3333333333333333333333333333333333333333
detached
prunable gitdir file points to non-existent location
"""


class TestParseWorktreePorcelain:
    def test_parses_all_blocks(self):
        entries = parse_worktree_porcelain(PORCELAIN)

        assert [e["path"] for e in entries] == [
            "/srv/repo",
            "/srv/repo-worktrees/feature/nested",
            "/srv/repo-worktrees/detached",
        ]

    def test_branch_and_lock(self):
        entry = parse_worktree_porcelain(PORCELAIN)[1]

        assert entry["branch"] == "feature/nested"
        assert entry["locked"] is True
        assert entry["lock_reason"] == "moved to usb drive"

    def test_detached_and_prunable(self):
        entry = parse_worktree_porcelain(PORCELAIN)[2]

        assert entry["detached"] is True
        assert entry["prunable"] is True
        assert "branch" not in entry

    def test_bare_entry_without_trailing_newline(self):
        entries = parse_worktree_porcelain("worktree /srv/repo.git\nbare")
        assert entries == [{"path": "/srv/repo.git", "bare": True}]

    def test_lock_without_reason(self):
        entry = parse_worktree_porcelain("worktree /a\nHEAD abc\nbranch refs/heads/x\nlocked\n")[0]
        assert entry["locked"] is True
        assert entry["lock_reason"] is None


class TestOpenRepository:
    def test_not_a_repository(self, temp_dir):
        with pytest.raises(NotARepositoryError) as exc_info:
            open_repository(str(temp_dir))
        assert isinstance(exc_info.value, RepositoryError)

    def test_missing_path(self, temp_dir):
        with pytest.raises(NotARepositoryError):
            open_repository(str(temp_dir / "nope"))

    def test_reader_failure_is_repository_error(self, temp_dir):
        reader = RepositoryReader(str(temp_dir))
        with pytest.raises(RepositoryError):
            reader.read_worktree_origins()


class TestHeadOf:
    def test_branch_head(self, git_repo):
        head = RepositoryReader.head_of(git_repo)

        assert head.branch == "main"
        assert head.commit_id == git_repo.head.commit.hexsha

    def test_detached_head(self, git_repo):
        git_repo.git.checkout("--detach")
        head = RepositoryReader.head_of(git_repo)

        assert head.branch is None
        assert len(head.commit_id) == 40

    def test_unborn_branch(self, temp_dir):
        repo = git.Repo.init(temp_dir / "empty")
        try:
            head = RepositoryReader.head_of(repo)
        finally:
            repo.close()

        assert head.branch is not None
        assert head.commit_id == ""


class TestReadOrigins:
    """Main worktree first and exactly once, then linked worktrees."""

    def test_single_worktree(self, git_repo):
        reader = RepositoryReader(git_repo.working_tree_dir)
        origins = reader.read_worktree_origins()

        assert len(origins) == 1
        assert isinstance(origins[0], MainOrigin)
        assert origins[0].identity.path == git_repo.working_tree_dir
        assert origins[0].identity.branch == "main"

    def test_linked_worktrees(self, repo_with_worktrees, worktrees_dir):
        reader = RepositoryReader(repo_with_worktrees.working_tree_dir)
        origins = reader.read_worktree_origins()

        assert isinstance(origins[0], MainOrigin)
        assert all(isinstance(o, LinkedOrigin) for o in origins[1:])
        assert sum(1 for o in origins if isinstance(o, MainOrigin)) == 1

        by_path = {o.identity.path: o.identity for o in origins[1:]}
        assert set(by_path) == {
            str(worktrees_dir / "feature-x"),
            str(worktrees_dir / "bugfix-y"),
            str(worktrees_dir / "detached"),
        }
        assert by_path[str(worktrees_dir / "feature-x")].branch == "feature-x"

        detached = by_path[str(worktrees_dir / "detached")]
        assert detached.branch is None
        assert detached.is_detached
        assert len(detached.commit_id) == 40

    def test_lock_state(self, repo_with_worktrees, worktrees_dir):
        path = str(worktrees_dir / "feature-x")
        repo_with_worktrees.git.worktree("lock", "--reason", "on a usb drive", path)

        origins = RepositoryReader(repo_with_worktrees.working_tree_dir).read_worktree_origins()
        identity = next(o.identity for o in origins if o.identity.path == path)

        assert identity.is_locked
        assert identity.lock_reason == "on a usb drive"

    def test_opened_from_linked_worktree(self, repo_with_worktrees, worktrees_dir):
        """The main identity is the main worktree even when read through a linked one."""
        reader = RepositoryReader(str(worktrees_dir / "feature-x"))
        origins = reader.read_worktree_origins()

        assert origins[0].identity.path == repo_with_worktrees.working_tree_dir
        assert origins[0].identity.branch == "main"
        assert len(origins) == 4

    def test_bare_repository(self, temp_dir):
        bare_path = temp_dir / "bare.git"
        git.Repo.init(bare_path, bare=True).close()

        origins = RepositoryReader(str(bare_path)).read_worktree_origins()

        assert len(origins) == 1
        assert origins[0].identity.is_bare
        assert origins[0].identity.path == str(bare_path)


class TestDiscoverRepoRoot:
    def test_from_subdirectory(self, git_repo):
        sub = Path(git_repo.working_tree_dir) / "src" / "pkg"
        sub.mkdir(parents=True)
        assert discover_repo_root(str(sub)) == git_repo.working_tree_dir

    def test_from_linked_worktree(self, repo_with_worktrees, worktrees_dir):
        assert discover_repo_root(str(worktrees_dir / "bugfix-y")) == repo_with_worktrees.working_tree_dir

    def test_outside_any_repository(self, temp_dir):
        outside = temp_dir / "plain"
        outside.mkdir()
        with pytest.raises(NotARepositoryError):
            discover_repo_root(str(outside))


class TestBranches:
    def test_list_branches(self, repo_with_worktrees, remote_repo):
        branches = RepositoryReader(repo_with_worktrees.working_tree_dir).list_branches()
        names = [b.name for b in branches]

        assert {"main", "feature-x", "bugfix-y"} <= set(names)
        assert "origin/main" in names
        assert not any(name.endswith("/HEAD") for name in names)

        main = next(b for b in branches if b.name == "main")
        assert main.is_current
        assert not main.is_remote
        assert next(b for b in branches if b.name == "origin/main").is_remote

    def test_detect_main_branch_from_origin_head(self, git_repo, remote_repo):
        git_repo.git.branch("-m", "main", "trunk")
        # origin/HEAD still points at origin/main
        assert RepositoryReader(git_repo.working_tree_dir).detect_main_branch() == "main"

    def test_detect_main_branch_fallbacks(self, git_repo):
        reader = RepositoryReader(git_repo.working_tree_dir)
        assert reader.detect_main_branch() == "main"

        git_repo.git.branch("-m", "main", "develop")
        assert reader.detect_main_branch() == "master"
