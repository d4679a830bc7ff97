"""Tests for mutating worktree operations."""

import os
import shutil
from pathlib import Path

import git

from conftest import commit_file, make_record

from git_worktree_tui.models.worktree import WorktreeStatus
from git_worktree_tui.services.git.operations import (
    OperationResult,
    WorktreeOperations,
    merge_targets,
)
from git_worktree_tui.services.git.repository import RepositoryReader


def worktree_paths(repo):
    return [o.identity.path for o in RepositoryReader(repo.working_tree_dir).read_worktree_origins()]


def record_for(repo, path, **kwargs):
    """Record for an existing worktree as the dashboard would hold it."""
    wt = git.Repo(path)
    try:
        branch = None if wt.head.is_detached else wt.head.ref.name
    finally:
        wt.close()
    return make_record(str(path), branch, **kwargs)


class TestWorktreesDir:
    def test_default_is_sibling_directory(self, git_repo):
        ops = WorktreeOperations(git_repo.working_tree_dir)
        expected = os.path.join(os.path.dirname(git_repo.working_tree_dir), "test_repo-worktrees")

        assert ops.get_worktrees_dir() == expected
        assert ops.worktree_path_for("topic") == os.path.join(expected, "topic")

    def test_configured_directory(self, git_repo, temp_dir):
        ops = WorktreeOperations(git_repo.working_tree_dir, worktrees_dir=str(temp_dir / "trees"))
        assert ops.get_worktrees_dir() == str(temp_dir / "trees")


class TestAddWorktree:
    def test_new_branch(self, git_repo, worktrees_dir):
        result = WorktreeOperations(git_repo.working_tree_dir).add_worktree("topic")

        assert result == OperationResult(True, "Created worktree: topic")
        assert (worktrees_dir / "topic" / "README.md").exists()
        assert "topic" in [h.name for h in git_repo.heads]
        assert str(worktrees_dir / "topic") in worktree_paths(git_repo)

    def test_new_branch_from_base(self, git_repo, worktrees_dir):
        git_repo.git.branch("base")
        commit_file(git_repo, "later.txt", "later\n", "Only on main")

        result = WorktreeOperations(git_repo.working_tree_dir).add_worktree("from-base", base_branch="base")

        assert result.success
        assert not (worktrees_dir / "from-base" / "later.txt").exists()

    def test_checkout_existing_branch(self, git_repo, worktrees_dir):
        git_repo.git.branch("existing")

        result = WorktreeOperations(git_repo.working_tree_dir).add_worktree(
            "existing-wt", base_branch="existing", checkout_existing=True
        )

        assert result.success
        wt = git.Repo(worktrees_dir / "existing-wt")
        assert wt.head.ref.name == "existing"
        wt.close()

    def test_empty_name(self, git_repo):
        result = WorktreeOperations(git_repo.working_tree_dir).add_worktree("   ")
        assert result == OperationResult(False, "Worktree name cannot be empty")

    def test_checkout_existing_requires_branch(self, git_repo):
        result = WorktreeOperations(git_repo.working_tree_dir).add_worktree("x", checkout_existing=True)
        assert not result.success

    def test_git_failure_reports_stderr(self, git_repo):
        ops = WorktreeOperations(git_repo.working_tree_dir)
        ops.add_worktree("dup")

        result = ops.add_worktree("dup")

        assert not result.success
        assert result.message.startswith("Failed: ")
        assert "dup" in result.message


class TestRemoveWorktree:
    def test_main_is_refused(self, git_repo):
        record = make_record(git_repo.working_tree_dir, "main", is_main=True)
        result = WorktreeOperations(git_repo.working_tree_dir).remove_worktree(record)

        assert result == OperationResult(False, "Cannot delete main worktree")

    def test_clean_worktree(self, repo_with_worktrees, worktrees_dir):
        path = worktrees_dir / "feature-x"
        result = WorktreeOperations(repo_with_worktrees.working_tree_dir).remove_worktree(
            record_for(repo_with_worktrees, path)
        )

        assert result == OperationResult(True, "Deleted worktree: feature-x")
        assert not path.exists()
        assert str(path) not in worktree_paths(repo_with_worktrees)

    def test_dirty_worktree_is_forced(self, repo_with_worktrees, worktrees_dir):
        path = worktrees_dir / "bugfix-y"
        (path / "wip.txt").write_text("unsaved\n")

        result = WorktreeOperations(repo_with_worktrees.working_tree_dir).remove_worktree(
            record_for(repo_with_worktrees, path, status=WorktreeStatus(untracked=1))
        )

        assert result.success
        assert not path.exists()


class TestLocking:
    def test_toggle_lock(self, repo_with_worktrees, worktrees_dir):
        ops = WorktreeOperations(repo_with_worktrees.working_tree_dir)
        path = str(worktrees_dir / "feature-x")

        def identity():
            origins = RepositoryReader(repo_with_worktrees.working_tree_dir).read_worktree_origins()
            return next(o.identity for o in origins if o.identity.path == path)

        result = ops.toggle_lock(make_record(path, "feature-x"))
        assert result == OperationResult(True, "Locked worktree: feature-x")
        assert identity().is_locked

        result = ops.toggle_lock(make_record(path, "feature-x", is_locked=True))
        assert result == OperationResult(True, "Unlocked worktree: feature-x")
        assert not identity().is_locked

    def test_lock_with_reason(self, repo_with_worktrees, worktrees_dir):
        path = str(worktrees_dir / "bugfix-y")
        WorktreeOperations(repo_with_worktrees.working_tree_dir).lock_worktree(
            make_record(path, "bugfix-y"), reason="portable disk"
        )

        origins = RepositoryReader(repo_with_worktrees.working_tree_dir).read_worktree_origins()
        assert next(o.identity for o in origins if o.identity.path == path).lock_reason == "portable disk"

    def test_unlock_unlocked_fails(self, repo_with_worktrees, worktrees_dir):
        record = make_record(str(worktrees_dir / "feature-x"), "feature-x")
        result = WorktreeOperations(repo_with_worktrees.working_tree_dir).unlock_worktree(record)
        assert not result.success


class TestMerge:
    def records(self, repo, worktrees_dir):
        return [
            make_record(repo.working_tree_dir, "main", is_main=True),
            make_record(str(worktrees_dir / "feature-x"), "feature-x"),
            make_record(str(worktrees_dir / "bugfix-y"), "bugfix-y"),
        ]

    def test_merge_into_active_branch(self, repo_with_worktrees, worktrees_dir):
        ops = WorktreeOperations(repo_with_worktrees.working_tree_dir)

        result = ops.merge("feature-x", "main", self.records(repo_with_worktrees, worktrees_dir))

        assert result == OperationResult(True, "Merged feature-x into main")
        assert (Path(repo_with_worktrees.working_tree_dir) / "feature.txt").exists()

    def test_merge_into_itself(self, repo_with_worktrees, worktrees_dir):
        ops = WorktreeOperations(repo_with_worktrees.working_tree_dir)
        result = ops.merge("main", "main", self.records(repo_with_worktrees, worktrees_dir))
        assert result == OperationResult(False, "Cannot merge branch into itself")

    def test_merge_from_detached(self, repo_with_worktrees, worktrees_dir):
        ops = WorktreeOperations(repo_with_worktrees.working_tree_dir)
        result = ops.merge(None, "main", self.records(repo_with_worktrees, worktrees_dir))
        assert not result.success

    def test_target_not_active(self, repo_with_worktrees, worktrees_dir):
        ops = WorktreeOperations(repo_with_worktrees.working_tree_dir)
        result = ops.merge("feature-x", "release", self.records(repo_with_worktrees, worktrees_dir))
        assert result == OperationResult(False, "Branch release is not active in any worktree")

    def test_conflict_names_worktree(self, repo_with_worktrees, worktrees_dir):
        commit_file(repo_with_worktrees, "feature.txt", "main version\n", "Conflicting change on main")

        result = WorktreeOperations(repo_with_worktrees.working_tree_dir).merge(
            "feature-x", "main", self.records(repo_with_worktrees, worktrees_dir)
        )

        assert result == OperationResult(False, f"Conflict! Resolve in: {repo_with_worktrees.working_tree_dir}")

    def test_merge_targets_order(self):
        records = [
            make_record("/a", "zeta"),
            make_record("/b", "master"),
            make_record("/c", None),
            make_record("/d", "alpha"),
            make_record("/e", "main"),
            make_record("/f", "alpha"),
        ]
        assert merge_targets(records) == ["main", "master", "alpha", "zeta"]
        assert merge_targets(records, source_branch="alpha") == ["main", "master", "zeta"]

    def test_merge_targets_default_branch_first(self):
        records = [make_record("/a", "main"), make_record("/b", "develop"), make_record("/c", "alpha")]
        assert merge_targets(records, default_branch="develop") == ["develop", "main", "alpha"]


class TestSyncAndPrune:
    def test_pull_without_upstream_fails(self, git_repo):
        record = make_record(git_repo.working_tree_dir, "main", is_main=True)
        result = WorktreeOperations(git_repo.working_tree_dir).pull(record)

        assert not result.success
        assert result.message.startswith("Pull failed: ")

    def test_push_and_pull_with_remote(self, git_repo, remote_repo):
        commit_file(git_repo, "new.txt", "new\n", "To be pushed")
        ops = WorktreeOperations(git_repo.working_tree_dir)
        record = make_record(git_repo.working_tree_dir, "main", is_main=True)

        assert ops.push(record) == OperationResult(True, "Pushed main")
        assert ops.pull(record) == OperationResult(True, "Pulled main")

        remote = git.Repo(remote_repo)
        assert remote.heads.main.commit.hexsha == git_repo.head.commit.hexsha
        remote.close()

    def test_fetch_all(self, git_repo, remote_repo):
        result = WorktreeOperations(git_repo.working_tree_dir).fetch_all()
        assert result == OperationResult(True, "Fetched latest from remote")

    def test_prune(self, repo_with_worktrees, worktrees_dir):
        path = worktrees_dir / "feature-x"
        shutil.rmtree(path)

        result = WorktreeOperations(repo_with_worktrees.working_tree_dir).prune()

        assert result == OperationResult(True, "Pruned stale worktrees")
        assert str(path) not in worktree_paths(repo_with_worktrees)
