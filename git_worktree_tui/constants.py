"""Shared constants for git-worktree-tui."""

from dataclasses import dataclass
from typing import List

# Length of abbreviated commit ids
SHORT_HASH_LENGTH = 7

# Displayed (and sorted) in place of a branch name for detached worktrees
DETACHED_PLACEHOLDER = "(detached)"

CACHE_TTL_SECONDS = 10
RECENT_COMMITS_LIMIT = 10

# Name of the sibling directory new worktrees are created in: <repo>-worktrees
WORKTREES_DIR_SUFFIX = "-worktrees"


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("index", "#", 3),
    ColumnDefinition("flags", "", 3),
    ColumnDefinition("branch", "Branch", 28),
    ColumnDefinition("status", "Status", 16),
    ColumnDefinition("commit", "Commit", 8),
    ColumnDefinition("message", "Message", 40),
    ColumnDefinition("age", "Age", 8),
]


# Symbol constants
SYMBOL_MAIN = "◆"
SYMBOL_CURRENT = "●"
SYMBOL_LOCKED = "🔒"
SYMBOL_PRUNABLE = "✗"
SYMBOL_BARE = "B"

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


# Row colors (Rich color names)
class RowStyleType:
    """Style types for worktree rows."""

    MAIN = "main"
    DIRTY = "dirty"
    CLEAN = "clean"
    PRUNABLE = "prunable"
    LOCKED = "locked"


TUI_COLORS = {
    RowStyleType.MAIN: "cyan",
    RowStyleType.DIRTY: "yellow",
    RowStyleType.CLEAN: "green",
    RowStyleType.PRUNABLE: "red",
    RowStyleType.LOCKED: "magenta",
}


HELP_TEXT = """[bold]Navigation[/bold]
  j / k, ↓ / ↑     Move selection
  g / G            First / last worktree
  1-9              Jump to worktree
  /                Search (esc clears)

[bold]Worktrees[/bold]
  c / a            Create worktree
  x / delete       Delete worktree
  L                Lock / unlock
  m                Merge branch into another worktree
  X                Prune stale worktree metadata

[bold]Remote[/bold]
  p / P            Pull / push selected worktree
  F                Fetch all remotes

[bold]View[/bold]
  s                Cycle sort (name, status, recent)
  t                Toggle recent commits
  r                Refresh
  enter            Show path
  y                Copy path
  O                Open in file manager
  space            Exit and cd into worktree
  ? / q            Help / quit

[bold]Legend[/bold]
  ◆ main   ● current   🔒 locked   ✗ prunable   B bare
  +staged  ~modified  ?untracked  ↑ahead  ↓behind
"""
