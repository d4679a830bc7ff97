"""Tests for sorting, filtering and selection in the worktree view."""

from dataclasses import replace

from conftest import make_record

from git_worktree_tui.models.worktree import WorktreeStatus
from git_worktree_tui.services.view_index import SortOrder, WorktreeView, matches_query


def names(records):
    return [r.display_name for r in records]


class TestSortOrder:
    def test_cycle(self):
        assert SortOrder.NAME.next() is SortOrder.STATUS
        assert SortOrder.STATUS.next() is SortOrder.RECENT
        assert SortOrder.RECENT.next() is SortOrder.NAME

    def test_labels_match_config_values(self):
        assert [o.label for o in SortOrder] == ["name", "status", "recent"]


class TestSorting:
    def test_recent_newest_first_unknown_last(self, sample_records):
        view = WorktreeView(sample_records, SortOrder.RECENT)
        assert names(view.visible_records) == ["main", "feature-x", "bugfix-y", "(detached)"]

    def test_name(self, sample_records):
        view = WorktreeView(sample_records, SortOrder.NAME)
        assert names(view.visible_records) == ["main", "(detached)", "bugfix-y", "feature-x"]

    def test_status_dirty_first(self, sample_records):
        view = WorktreeView(sample_records, SortOrder.STATUS)
        assert names(view.visible_records) == ["main", "bugfix-y", "(detached)", "feature-x"]

    def test_status_ignores_ahead_behind(self, sample_records):
        records = [
            replace(r, status=WorktreeStatus(ahead=3, behind=1)) if r.branch == "feature-x" else r
            for r in sample_records
        ]
        view = WorktreeView(records, SortOrder.STATUS)
        assert names(view.visible_records) == ["main", "bugfix-y", "(detached)", "feature-x"]

    def test_main_pinned_first_in_every_order(self, sample_records):
        # Give main the oldest commit, a late name and a clean tree
        records = [replace(sample_records[0], branch="zzz-main", commit_time=1)] + sample_records[1:]
        view = WorktreeView(records)
        for order in SortOrder:
            view.set_sort_order(order)
            assert view.visible_records[0].is_main, f"main not first when sorted by {order.label}"

    def test_collection_is_not_reordered(self, sample_records):
        view = WorktreeView(sample_records, SortOrder.NAME)
        assert view.records == sample_records
        assert view.sorted_indices == [0, 3, 2, 1]


class TestFiltering:
    def test_matches_path_branch_and_summary(self):
        record = make_record("/work/Alpha", "feature/Beta", summary="Gamma fix")
        assert matches_query(record, "alpha")
        assert matches_query(record, "BETA")
        assert matches_query(record, "gamma")
        assert not matches_query(record, "delta")
        assert matches_query(record, "")

    def test_detached_without_summary(self):
        record = make_record("/work/x", None, summary=None)
        assert not matches_query(record, "main")

    def test_search_fix_then_clear(self, sample_records):
        view = WorktreeView(sample_records)
        before = names(view.visible_records)

        view.set_query("fix")
        assert names(view.visible_records) == ["bugfix-y"]

        view.clear_query()
        assert names(view.visible_records) == before

    def test_no_matches(self, sample_records):
        view = WorktreeView(sample_records)
        view.set_query("nothing matches this")

        assert len(view) == 0
        assert view.selected is None
        assert view.selected_record() is None

    def test_selection_kept_when_still_visible(self, sample_records):
        view = WorktreeView(sample_records)
        view.select_path("/work/repo-worktrees/bugfix-y")

        view.set_query("repo-worktrees")

        assert view.selected_record().branch == "bugfix-y"

    def test_selection_reset_when_filtered_out(self, sample_records):
        view = WorktreeView(sample_records)
        view.select_path("/work/repo-worktrees/feature-x")

        view.set_query("fix")

        assert view.selected == 0
        assert view.selected_record().branch == "bugfix-y"


class TestSelection:
    def test_initial_selection(self, sample_records):
        assert WorktreeView(sample_records).selected == 0
        assert WorktreeView([]).selected is None

    def test_move_is_clamped(self, sample_records):
        view = WorktreeView(sample_records)
        view.move_selection(-1)
        assert view.selected == 0
        view.move_selection(10)
        assert view.selected == 3

    def test_first_last(self, sample_records):
        view = WorktreeView(sample_records)
        view.select_last()
        assert view.selected_record().display_name == "(detached)"
        view.select_first()
        assert view.selected_record().is_main

    def test_select_path_not_visible(self, sample_records):
        view = WorktreeView(sample_records)
        assert not view.select_path("/nowhere")
        assert view.selected == 0

    def test_preserved_across_reordering_replace(self, sample_records):
        """Selection follows the branch even when a refresh reorders rows."""
        view = WorktreeView(sample_records, SortOrder.RECENT)
        view.select_path("/work/repo-worktrees/bugfix-y")
        assert view.selected == 2

        refreshed = [
            replace(r, commit_time=9000) if r.branch == "bugfix-y" else r
            for r in sample_records
        ]
        view.replace(refreshed)

        assert names(view.visible_records) == ["main", "bugfix-y", "feature-x", "(detached)"]
        assert view.selected == 1
        assert view.selected_record().branch == "bugfix-y"

    def test_preserved_by_branch_when_path_changes(self, sample_records):
        view = WorktreeView(sample_records)
        view.select_path("/work/repo-worktrees/feature-x")

        moved = [
            replace(r, path="/elsewhere/feature-x") if r.branch == "feature-x" else r
            for r in sample_records
        ]
        view.replace(moved)

        assert view.selected_record().path == "/elsewhere/feature-x"

    def test_preserved_by_path_when_branch_changes(self, sample_records):
        view = WorktreeView(sample_records)
        view.select_path("/work/repo-worktrees/feature-x")

        switched = [
            replace(r, branch="feature-z") if r.branch == "feature-x" else r
            for r in sample_records
        ]
        view.replace(switched)

        assert view.selected_record().path == "/work/repo-worktrees/feature-x"
        assert view.selected_record().branch == "feature-z"

    def test_falls_back_to_first_when_selected_disappears(self, sample_records):
        view = WorktreeView(sample_records)
        view.select_path("/work/repo-worktrees/feature-x")

        view.replace([r for r in sample_records if r.branch != "feature-x"])

        assert view.selected == 0

    def test_cycle_sort_keeps_selection(self, sample_records):
        view = WorktreeView(sample_records, SortOrder.RECENT)
        view.select_path("/work/repo-worktrees/feature-x")

        assert view.cycle_sort() is SortOrder.NAME
        assert view.selected_record().branch == "feature-x"
