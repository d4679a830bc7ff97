"""Interactive TUI for git-worktree-tui using Textual."""

import asyncio
import os
import subprocess
import sys
from typing import Callable, List, Optional

from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import DataTable, Footer, Input, Static

from .constants import COLUMNS, SPINNER_FRAMES, TUI_COLORS
from .core.worktree_keeper import WorktreeKeeper
from .formatters import format_path, format_relative_time, format_status, get_row_style_type
from .logging_config import get_logger
from .models.worktree import WorktreeRecord
from .services.display_service import build_row
from .services.git.operations import OperationResult, merge_targets
from .services.refresh_service import RefreshCoordinator
from .services.view_index import SortOrder, WorktreeView
from .ui.screens import (
    ConfirmScreen,
    CreateRequest,
    CreateWorktreeScreen,
    ErrorScreen,
    HelpScreen,
    MergeTargetScreen,
)
from .ui.widgets import DashboardHeader

logger = get_logger(__name__)


class WorktreesLoaded(Message):
    """Outcome of one background fetch; ``records`` is None when it failed."""

    def __init__(self, records: Optional[List[WorktreeRecord]]):
        super().__init__()
        self.records = records


def open_in_file_manager(path: str) -> None:
    """Open ``path`` with the platform's file manager (does not wait)."""
    if sys.platform == "darwin":
        command = ["open", path]
    elif sys.platform.startswith("win"):
        command = ["explorer", path]
    else:
        command = ["xdg-open", path]
    subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)


class WorktreeApp(App[Optional[str]]):
    """Dashboard for the worktrees of one repository.

    Exits with the path chosen with space (None otherwise).
    """

    ENABLE_COMMAND_PALETTE = False
    TITLE = "Git Worktrees"

    CSS = """
    Screen {
        background: $surface;
    }

    #search {
        dock: top;
        display: none;
    }

    #search.visible {
        display: block;
    }

    DataTable {
        height: 1fr;
    }

    #details {
        height: auto;
        max-height: 16;
        background: $panel;
        padding: 0 1;
        border-top: solid $primary 40%;
    }

    #details.hidden {
        display: none;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $panel;
        padding: 0 1;
    }

    ToastRack {
        offset: 0 -2;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "escape", "Quit", show=False),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("g", "first", "First", show=False),
        Binding("G", "last", "Last", show=False),
        Binding("slash", "search", "Search"),
        Binding("c", "create", "Create"),
        Binding("a", "create", "Create", show=False),
        Binding("x", "delete", "Delete"),
        Binding("delete", "delete", "Delete", show=False),
        Binding("space", "select_and_exit", "cd"),
        Binding("y", "copy_path", "Copy path", show=False),
        Binding("O", "open_file_manager", "Open", show=False),
        Binding("p", "pull", "Pull", show=False),
        Binding("P", "push", "Push", show=False),
        Binding("s", "cycle_sort", "Sort"),
        Binding("t", "toggle_details", "Details", show=False),
        Binding("L", "toggle_lock", "Lock", show=False),
        Binding("r", "refresh", "Refresh"),
        Binding("F", "fetch_all", "Fetch", show=False),
        Binding("X", "prune", "Prune", show=False),
        Binding("m", "merge", "Merge", show=False),
        Binding("question_mark", "help", "Help"),
    ] + [Binding(str(n), f"jump({n - 1})", f"Jump {n}", show=False) for n in range(1, 10)]

    def __init__(self, keeper: WorktreeKeeper):
        super().__init__()
        self.keeper = keeper
        self.config = keeper.config
        self.view = WorktreeView(sort_order=SortOrder(self.config.sort_order))
        self.coordinator = RefreshCoordinator(
            keeper,
            self.view,
            ttl=self.config.cache_ttl,
            use_cache=not self.config.refresh,
        )
        self.show_details = self.config.show_recent_commits
        self._spinner_index = 0

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield DashboardHeader(self.keeper.repo_name)
        yield Input(placeholder="Filter by path, branch or commit message...", id="search")
        yield DataTable(id="worktree-table", cursor_type="row", zebra_stripes=True)
        yield Static(id="details")
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Set up the table and seed it from the cache."""
        table = self.query_one(DataTable)
        for col in COLUMNS:
            table.add_column(col.label, width=col.width or None, key=col.key)

        if not self.show_details:
            self.query_one("#details", Static).add_class("hidden")

        needs_fetch = self.coordinator.start()
        self._populate_table()
        if needs_fetch:
            table.loading = len(self.view.records) == 0
            self.load_worktrees()

        self.set_interval(0.1, self._tick_spinner)
        table.focus()

    # ----- rendering -----

    def _populate_table(self) -> None:
        """Rebuild the table rows from the view and restore the cursor."""
        table = self.query_one(DataTable)
        table.clear()

        for index, record in enumerate(self.view.visible_records, start=1):
            color = TUI_COLORS.get(get_row_style_type(record))
            cells = build_row(index, record)
            row = [Text(cell, style=color) for cell in cells]
            if record.is_current:
                row[2].stylize("bold")
            table.add_row(*row, key=record.path)

        if self.view.selected is not None:
            table.move_cursor(row=self.view.selected)
        self._update_details()
        self._update_status()

    def _update_details(self) -> None:
        details = self.query_one("#details", Static)
        record = self.view.selected_record()
        if record is None:
            details.update("")
            return

        text = Text()
        text.append("Path:   ", style="bold")
        text.append(f"{format_path(record.path, 100)}\n")
        text.append("Branch: ", style="bold")
        text.append(f"{record.display_name}\n")
        text.append("Commit: ", style="bold")
        text.append(f"{record.commit_id_short} {record.commit_summary or ''}".rstrip())
        if record.commit_time is not None:
            text.append(f" ({format_relative_time(record.commit_time)})", style="dim")
        text.append("\n")
        text.append("Status: ", style="bold")
        text.append(format_status(record), style=TUI_COLORS.get(get_row_style_type(record)))
        if record.is_locked:
            text.append("\nLocked: ", style="bold")
            text.append(record.lock_reason or "(no reason given)")

        if record.recent_commits:
            text.append("\n\nRecent commits\n", style="bold underline")
            for commit in record.recent_commits:
                text.append(f"{commit.hash} ", style="yellow")
                text.append(commit.message)
                text.append(f"  {commit.relative_age}\n", style="dim")

        details.update(text)

    def _update_status(self) -> None:
        """Update status bar with counts, sort order and loading state."""
        status = self.query_one("#status-bar", Static)
        total = len(self.view.records)
        shown = len(self.view)

        parts = []
        if self.coordinator.is_loading:
            frame = SPINNER_FRAMES[self._spinner_index % len(SPINNER_FRAMES)]
            parts.append(f"{frame} Loading" if self.coordinator.in_flight else "Load failed (r to retry)")
        parts.append(f"{total} worktrees" if shown == total else f"{shown}/{total} worktrees")
        parts.append(f"Sort: {self.view.sort_order.label}")
        if self.view.query:
            parts.append(f"Filter: {self.view.query}")
        status.update(" | ".join(parts))

    def _tick_spinner(self) -> None:
        if self.coordinator.in_flight:
            self._spinner_index += 1
            self._update_status()

    def _sync_cursor(self) -> None:
        table = self.query_one(DataTable)
        if self.view.selected is not None and table.row_count:
            table.move_cursor(row=self.view.selected)
        self._update_details()

    # ----- refresh pipeline -----

    @work(exclusive=True, group="refresh", thread=False)
    async def load_worktrees(self) -> None:
        """Run the blocking fetch off the event loop and post its outcome."""
        records = await asyncio.to_thread(self.coordinator.fetch)
        self.post_message(WorktreesLoaded(records))

    def on_worktrees_loaded(self, message: WorktreesLoaded) -> None:
        table = self.query_one(DataTable)
        table.loading = False

        if message.records is None:
            self.coordinator.fetch_failed()
            self.notify(
                "Failed to read worktrees (see log)",
                severity="error",
                timeout=self.config.notification_timeout,
            )
            self._update_status()
            return

        self.coordinator.apply_result(message.records)
        self._populate_table()
        self.notify("Worktrees refreshed", timeout=self.config.notification_timeout)

    def _start_refresh(self) -> bool:
        if not self.coordinator.request_refresh():
            return False
        self._update_status()
        self.load_worktrees()
        return True

    def action_refresh(self) -> None:
        if not self._start_refresh():
            self.notify("Refresh already in progress", timeout=self.config.notification_timeout)

    # ----- mutations -----

    @work(group="operation", thread=False)
    async def run_operation(
        self,
        progress: str,
        func: Callable[..., OperationResult],
        *args,
        select_path: Optional[str] = None,
    ) -> None:
        """Run a mutating operation off the event loop, then refresh on success."""
        self.notify(progress, timeout=self.config.notification_timeout)
        result = await asyncio.to_thread(func, *args)

        if not result.success:
            logger.warning(f"Operation failed: {result.message}")
            self.push_screen(ErrorScreen(result.message))
            return

        self.notify(result.message, timeout=self.config.notification_timeout)
        if select_path is not None:
            self.coordinator.pending_select_path = select_path
        self._start_refresh()

    def _selected_or_warn(self) -> Optional[WorktreeRecord]:
        record = self.view.selected_record()
        if record is None:
            self.notify("No worktree selected", severity="warning")
        return record

    def action_create(self) -> None:
        self.open_create_dialog()

    @work(exclusive=True, group="dialog", thread=False)
    async def open_create_dialog(self) -> None:
        """List branches off the event loop, then show the create dialog."""
        branches = await asyncio.to_thread(self.keeper.list_branches)
        operations = self.keeper.operations

        def handle(request: Optional[CreateRequest]) -> None:
            if request is None:
                return
            self.run_operation(
                f"Creating worktree {request.name}...",
                operations.add_worktree,
                request.name,
                request.base_branch,
                request.checkout_existing,
                select_path=operations.worktree_path_for(request.name),
            )

        self.push_screen(CreateWorktreeScreen(branches, operations.get_worktrees_dir()), handle)

    def action_delete(self) -> None:
        record = self._selected_or_warn()
        if record is None:
            return
        if record.is_main:
            self.push_screen(ErrorScreen("Cannot delete main worktree"))
            return

        message = f"Delete worktree {record.display_name}?\n\n{record.path}"
        if not record.status.is_clean:
            message += f"\n\nIt has uncommitted changes ({record.status.summary()}); they will be lost."

        def handle(confirmed: Optional[bool]) -> None:
            if confirmed:
                self.run_operation(
                    f"Deleting {record.display_name}...", self.keeper.operations.remove_worktree, record
                )

        self.push_screen(ConfirmScreen(message), handle)

    def action_toggle_lock(self) -> None:
        record = self._selected_or_warn()
        if record is None:
            return
        if record.is_main:
            self.push_screen(ErrorScreen("The main worktree cannot be locked"))
            return
        verb = "Unlocking" if record.is_locked else "Locking"
        self.run_operation(f"{verb} {record.display_name}...", self.keeper.operations.toggle_lock, record)

    def action_pull(self) -> None:
        record = self._selected_or_warn()
        if record is not None:
            self.run_operation("Pulling...", self.keeper.operations.pull, record)

    def action_push(self) -> None:
        record = self._selected_or_warn()
        if record is not None:
            self.run_operation("Pushing...", self.keeper.operations.push, record)

    def action_fetch_all(self) -> None:
        self.run_operation("Fetching from remote...", self.keeper.operations.fetch_all)

    def action_prune(self) -> None:
        self.run_operation("Pruning stale worktrees...", self.keeper.operations.prune)

    def action_merge(self) -> None:
        record = self._selected_or_warn()
        if record is None:
            return
        if record.branch is None:
            self.push_screen(ErrorScreen("Cannot merge from a detached HEAD"))
            return

        self.open_merge_dialog(record)

    @work(exclusive=True, group="dialog", thread=False)
    async def open_merge_dialog(self, record: WorktreeRecord) -> None:
        """Look up the default branch off the event loop, then show the target picker."""
        default_branch = await asyncio.to_thread(self.keeper.detect_main_branch)
        records = list(self.view.records)
        targets = merge_targets(records, source_branch=record.branch, default_branch=default_branch)
        if not targets:
            self.push_screen(ErrorScreen("No other branch is checked out in a worktree"))
            return

        def handle(target: Optional[str]) -> None:
            if target is None:
                return
            self.run_operation(
                f"Merging {record.branch} into {target}...",
                self.keeper.operations.merge,
                record.branch,
                target,
                records,
            )

        self.push_screen(MergeTargetScreen(record.branch, targets), handle)

    # ----- navigation and view -----

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if event.cursor_row >= len(self.view):
            return
        if event.cursor_row != self.query_one(DataTable).cursor_row:
            return  # Stale highlight from before a rebuild
        self.view.select(event.cursor_row)
        self._update_details()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter shows the full path of the worktree."""
        record = self.view.selected_record()
        if record is not None:
            self.notify(record.path, title=record.display_name, timeout=self.config.notification_timeout)

    def action_cursor_down(self) -> None:
        self.view.move_selection(1)
        self._sync_cursor()

    def action_cursor_up(self) -> None:
        self.view.move_selection(-1)
        self._sync_cursor()

    def action_first(self) -> None:
        self.view.select_first()
        self._sync_cursor()

    def action_last(self) -> None:
        self.view.select_last()
        self._sync_cursor()

    def action_jump(self, position: int) -> None:
        if position < len(self.view):
            self.view.select(position)
            self._sync_cursor()

    def action_cycle_sort(self) -> None:
        order = self.view.cycle_sort()
        self._populate_table()
        self.notify(f"Sorted by {order.label}", timeout=self.config.notification_timeout)

    def action_toggle_details(self) -> None:
        self.show_details = not self.show_details
        self.query_one("#details", Static).set_class(not self.show_details, "hidden")

    def action_search(self) -> None:
        search = self.query_one("#search", Input)
        search.add_class("visible")
        search.focus()

    @on(Input.Changed, "#search")
    def on_search_changed(self, event: Input.Changed) -> None:
        self.view.set_query(event.value)
        self._populate_table()

    @on(Input.Submitted, "#search")
    def on_search_submitted(self) -> None:
        self.query_one(DataTable).focus()

    def _clear_search(self) -> None:
        search = self.query_one("#search", Input)
        search.value = ""
        search.remove_class("visible")
        self.view.clear_query()
        self._populate_table()
        self.query_one(DataTable).focus()

    def action_escape(self) -> None:
        """Esc clears an active search first, and quits otherwise."""
        search = self.query_one("#search", Input)
        if search.has_class("visible") or self.view.query:
            self._clear_search()
            return
        self.exit(None)

    def action_help(self) -> None:
        self.push_screen(HelpScreen())

    # ----- selection output -----

    def action_select_and_exit(self) -> None:
        record = self._selected_or_warn()
        if record is not None:
            self.exit(record.path)

    def action_copy_path(self) -> None:
        record = self._selected_or_warn()
        if record is not None:
            self.copy_to_clipboard(record.path)
            self.notify(f"Copied: {record.path}", timeout=self.config.notification_timeout)

    def action_open_file_manager(self) -> None:
        record = self._selected_or_warn()
        if record is None:
            return
        if not os.path.isdir(record.path):
            self.push_screen(ErrorScreen(f"{record.path} does not exist"))
            return
        try:
            open_in_file_manager(record.path)
        except OSError as e:
            self.push_screen(ErrorScreen(f"Failed to open file manager: {e}"))
            return
        self.notify("Opened in file manager", timeout=self.config.notification_timeout)

    async def action_quit(self) -> None:
        """Cancel background work before exiting."""
        self.workers.cancel_all()
        self.exit(None)
