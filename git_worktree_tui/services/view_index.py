"""Sorted, filtered view over the live worktree collection."""

from enum import Enum
from typing import List, Optional, Tuple

from git_worktree_tui.logging_config import get_logger
from git_worktree_tui.models.worktree import WorktreeRecord

logger = get_logger(__name__)


class SortOrder(Enum):
    """Orders the dashboard can cycle through with one key."""

    NAME = "name"
    STATUS = "status"
    RECENT = "recent"

    def next(self) -> "SortOrder":
        members = list(SortOrder)
        return members[(members.index(self) + 1) % len(members)]

    @property
    def label(self) -> str:
        return self.value


def _sort_key(record: WorktreeRecord, order: SortOrder) -> Tuple:
    # Main worktree is pinned first in every order
    pinned = 0 if record.is_main else 1
    if order is SortOrder.NAME:
        return (pinned, record.display_name)
    if order is SortOrder.STATUS:
        # Dirty means file changes only; ahead/behind do not affect the order
        return (pinned, 0 if not record.status.is_clean else 1, record.display_name)
    # RECENT: newest commit first, unknown times last
    if record.commit_time is None:
        return (pinned, 1, 0)
    return (pinned, 0, -record.commit_time)


def matches_query(record: WorktreeRecord, query: str) -> bool:
    """Case-insensitive substring match against path, branch and commit summary."""
    if not query:
        return True
    needle = query.lower()
    return (
        needle in record.path.lower()
        or (record.branch is not None and needle in record.branch.lower())
        or (record.commit_summary is not None and needle in record.commit_summary.lower())
    )


class WorktreeView:
    """Owns the worktree collection plus its sort order, filter and selection.

    The collection itself is never reordered; ``sorted_indices`` and
    ``visible_indices`` are index lists into it. ``selected`` is a position
    within the visible rows (None when nothing is visible).
    """

    def __init__(self, records: Optional[List[WorktreeRecord]] = None, sort_order: SortOrder = SortOrder.RECENT):
        self.records: List[WorktreeRecord] = list(records or [])
        self.sort_order = sort_order
        self.query = ""
        self.sorted_indices: List[int] = []
        self.visible_indices: List[int] = []
        self.selected: Optional[int] = None
        self._recompute()
        self.select_first()

    def _recompute(self) -> None:
        order = self.sort_order
        self.sorted_indices = sorted(
            range(len(self.records)), key=lambda i: _sort_key(self.records[i], order)
        )
        self.visible_indices = [
            i for i in self.sorted_indices if matches_query(self.records[i], self.query)
        ]

    def _reselect(self, previous: Optional[WorktreeRecord]) -> None:
        """Keep ``previous`` selected if it is still visible, else fall back to the first row.

        Matched by branch first, then by path (a worktree may switch branch between refreshes).
        """
        if previous is not None:
            if self.select_identity(previous.identity_key):
                return
            if self.select_path(previous.path):
                return
        self.select_first()

    def __len__(self) -> int:
        return len(self.visible_indices)

    @property
    def visible_records(self) -> List[WorktreeRecord]:
        return [self.records[i] for i in self.visible_indices]

    def selected_record(self) -> Optional[WorktreeRecord]:
        if self.selected is None or self.selected >= len(self.visible_indices):
            return None
        return self.records[self.visible_indices[self.selected]]

    def replace(self, records: List[WorktreeRecord]) -> None:
        """Swap in a whole new collection, keeping the selection by identity."""
        previous = self.selected_record()
        self.records = list(records)
        self._recompute()
        self._reselect(previous)
        logger.debug(f"View now holds {len(self.records)} worktrees, {len(self.visible_indices)} visible")

    def set_sort_order(self, order: SortOrder) -> None:
        previous = self.selected_record()
        self.sort_order = order
        self._recompute()
        self._reselect(previous)

    def cycle_sort(self) -> SortOrder:
        """Advance to the next sort order and return it."""
        self.set_sort_order(self.sort_order.next())
        return self.sort_order

    def set_query(self, query: str) -> None:
        previous = self.selected_record()
        self.query = query
        self._recompute()
        self._reselect(previous)

    def clear_query(self) -> None:
        self.set_query("")

    def select(self, position: Optional[int]) -> None:
        """Select the visible row at ``position`` (clamped)."""
        if position is None or not self.visible_indices:
            self.selected = None
            return
        self.selected = max(0, min(position, len(self.visible_indices) - 1))

    def move_selection(self, delta: int) -> None:
        if not self.visible_indices:
            return
        current = self.selected if self.selected is not None else 0
        self.select(current + delta)

    def select_first(self) -> None:
        self.select(0 if self.visible_indices else None)

    def select_last(self) -> None:
        self.select(len(self.visible_indices) - 1 if self.visible_indices else None)

    def select_path(self, path: str) -> bool:
        """Select the visible record at ``path``; False if it is not visible."""
        for position, index in enumerate(self.visible_indices):
            if self.records[index].path == path:
                self.selected = position
                return True
        return False

    def select_identity(self, key: Tuple[str, str]) -> bool:
        """Select the visible record with the given identity key; False if none."""
        for position, index in enumerate(self.visible_indices):
            if self.records[index].identity_key == key:
                self.selected = position
                return True
        return False
