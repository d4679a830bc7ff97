"""Plain-terminal rendering of the worktree table (``--list`` mode)."""
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from git_worktree_tui.constants import COLUMNS, TUI_COLORS
from git_worktree_tui.formatters import (
    format_flags,
    format_relative_time,
    format_status,
    get_row_style_type,
    truncate,
)
from git_worktree_tui.models.worktree import WorktreeRecord


def build_row(index: int, record: WorktreeRecord, now: Optional[float] = None) -> List[str]:
    """Cell texts for one worktree, in ``COLUMNS`` order."""
    message_width = next(c.width for c in COLUMNS if c.key == "message")
    return [
        str(index),
        format_flags(record),
        record.display_name,
        format_status(record),
        record.commit_id_short,
        truncate(record.commit_summary or "", message_width),
        format_relative_time(record.commit_time, now),
    ]


def build_worktree_table(records: List[WorktreeRecord], now: Optional[float] = None) -> Table:
    table = Table()
    for col in COLUMNS:
        table.add_column(col.label)

    for index, record in enumerate(records, start=1):
        row_style = TUI_COLORS.get(get_row_style_type(record))
        table.add_row(*build_row(index, record, now), style=row_style)
    return table


def display_worktree_table(records: List[WorktreeRecord], console: Optional[Console] = None) -> None:
    """Print the worktree table followed by a one-line summary."""
    console = console or Console()
    if not records:
        console.print("[yellow]No worktrees found[/yellow]")
        return

    console.print(build_worktree_table(records))
    dirty = sum(1 for r in records if not r.is_bare and not r.is_prunable and not r.status.is_clean)
    prunable = sum(1 for r in records if r.is_prunable)
    summary = f"{len(records)} worktrees, {dirty} with changes"
    if prunable:
        summary += f", {prunable} prunable (press X in the dashboard or run 'git worktree prune')"
    console.print(f"[dim]{summary}[/dim]")
