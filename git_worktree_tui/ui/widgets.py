"""Custom widgets for the git-worktree-tui dashboard."""

from typing import Optional

from rich.text import Text
from textual.app import ComposeResult, RenderResult
from textual.events import Click
from textual.reactive import reactive
from textual.widgets import Header
from textual.widgets._header import HeaderClockSpace, HeaderIcon, HeaderTitle

from git_worktree_tui.__version__ import __version__


class RepoBadge(HeaderClockSpace):
    """Repository name and version, docked where the header clock would be."""

    DEFAULT_CSS = """
    RepoBadge {
        width: auto;
        dock: right;
        padding: 0 1;
        background: $foreground 5%;
        color: $text;
        text-opacity: 85%;
    }
    """

    repo_name = reactive("")

    def __init__(self, repo_name: str = ""):
        super().__init__()
        self.repo_name = repo_name

    def render(self) -> RenderResult:
        text = Text()
        if self.repo_name:
            text.append(self.repo_name, style="bold")
            text.append("  ")
        text.append(f"v{__version__}", style="dim")
        return text


class DashboardHeader(Header):
    """Fixed-height header carrying a :class:`RepoBadge`."""

    def __init__(self, repo_name: Optional[str] = None):
        super().__init__(icon="")
        self._repo_name = repo_name or ""

    def compose(self) -> ComposeResult:
        yield HeaderIcon().data_bind(Header.icon)
        yield HeaderTitle()
        yield RepoBadge(self._repo_name)

    def on_click(self, event: Click) -> None:
        event.stop()  # Header toggles its tall mode on click otherwise
