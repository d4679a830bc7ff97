"""Modal screens for the worktree dashboard."""

from dataclasses import dataclass
from typing import List, Optional

from rich.text import Text
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from git_worktree_tui.constants import HELP_TEXT
from git_worktree_tui.models.branch import BranchRef

DIALOG_CSS = """
    {name} {{
        align: center middle;
    }}

    #{name}-dialog {{
        width: 80%;
        max-width: 100;
        height: auto;
        max-height: 90%;
        border: thick $background 80%;
        background: $surface;
        padding: 1 2;
    }}

    .dialog-title {{
        width: 100%;
        text-style: bold;
        padding: 0 0 1 0;
    }}

    .button-row {{
        width: 100%;
        height: auto;
        align: center middle;
        padding: 1 0 0 0;
    }}

    Button {{
        margin: 0 1;
    }}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Modal confirmation dialog."""

    DEFAULT_CSS = DIALOG_CSS.format(name="ConfirmScreen")

    BINDINGS = [
        Binding("y", "answer(True)", "Yes", show=False),
        Binding("n", "answer(False)", "No", show=False),
        Binding("escape", "answer(False)", "Cancel"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="ConfirmScreen-dialog"):
            yield Static(Text(self.message), id="confirm-message")
            with Horizontal(classes="button-row"):
                yield Button("Yes (y)", variant="error", id="yes")
                yield Button("No (n)", variant="primary", id="no")

    def action_answer(self, value: bool) -> None:
        self.dismiss(value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")


class ErrorScreen(ModalScreen[None]):
    """Shows a failure message; ``y`` copies it to the clipboard."""

    DEFAULT_CSS = DIALOG_CSS.format(name="ErrorScreen") + """
    #error-message {
        color: $error;
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("enter", "close", "Close", show=False),
        Binding("q", "close", "Close", show=False),
        Binding("y", "copy", "Copy"),
    ]

    def __init__(self, message: str, title: str = "Error"):
        super().__init__()
        self.message = message
        self.title_text = title

    def compose(self) -> ComposeResult:
        with Vertical(id="ErrorScreen-dialog"):
            yield Label(self.title_text, classes="dialog-title")
            with VerticalScroll(id="error-message"):
                yield Static(Text(self.message))
            with Horizontal(classes="button-row"):
                yield Button("Copy (y)", id="copy")
                yield Button("Close", variant="primary", id="close")

    def action_close(self) -> None:
        self.dismiss()

    def action_copy(self) -> None:
        self.app.copy_to_clipboard(self.message)
        self.app.notify("Error copied to clipboard")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "copy":
            self.action_copy()
        else:
            self.dismiss()


class HelpScreen(ModalScreen[None]):
    """Key bindings and legend."""

    DEFAULT_CSS = DIALOG_CSS.format(name="HelpScreen")

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("q", "close", "Close", show=False),
        Binding("question_mark", "close", "Close", show=False),
    ]

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="HelpScreen-dialog"):
            yield Label("Help", classes="dialog-title")
            yield Static(HELP_TEXT)

    def action_close(self) -> None:
        self.dismiss()


@dataclass(frozen=True)
class CreateRequest:
    """What the create dialog hands back to the app."""

    name: str
    base_branch: Optional[str] = None
    checkout_existing: bool = False


class CreateWorktreeScreen(ModalScreen[Optional[CreateRequest]]):
    """Name a new worktree, pick a base branch, or check out an existing one."""

    DEFAULT_CSS = DIALOG_CSS.format(name="CreateWorktreeScreen") + """
    #branch-list {
        height: 12;
        margin: 1 0 0 0;
    }

    #create-error {
        color: $error;
        height: auto;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    HEAD_OPTION = "(current HEAD)"

    def __init__(self, branches: List[BranchRef], worktrees_dir: str):
        super().__init__()
        self.branches = branches
        self.worktrees_dir = worktrees_dir

    def compose(self) -> ComposeResult:
        with Vertical(id="CreateWorktreeScreen-dialog"):
            yield Label("Create worktree", classes="dialog-title")
            yield Static(Text(f"in {self.worktrees_dir}", style="dim"))
            yield Input(placeholder="Worktree / branch name", id="name-input")
            yield Checkbox("Check out an existing branch instead of creating one", id="checkout-existing")
            options = [Option(self.HEAD_OPTION)]
            for branch in self.branches:
                label = Text(branch.name, style="dim" if branch.is_remote else "")
                if branch.is_current:
                    label.append(" (current)", style="bold")
                options.append(Option(label))
            yield OptionList(*options, id="branch-list")
            yield Static("", id="create-error")
            with Horizontal(classes="button-row"):
                yield Button("Create", variant="success", id="create")
                yield Button("Cancel", variant="primary", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#name-input", Input).focus()

    def _selected_branch(self) -> Optional[str]:
        highlighted = self.query_one("#branch-list", OptionList).highlighted
        if highlighted is None or highlighted == 0:
            return None
        return self.branches[highlighted - 1].name

    def _submit(self) -> None:
        name = self.query_one("#name-input", Input).value.strip()
        checkout_existing = self.query_one("#checkout-existing", Checkbox).value
        base_branch = self._selected_branch()
        error = self.query_one("#create-error", Static)

        if not name:
            error.update("Worktree name cannot be empty")
            return
        if checkout_existing and base_branch is None:
            error.update("Select a branch to check out")
            return

        self.dismiss(CreateRequest(name=name, base_branch=base_branch, checkout_existing=checkout_existing))

    @on(Input.Submitted, "#name-input")
    def on_name_submitted(self) -> None:
        self._submit()

    @on(OptionList.OptionSelected, "#branch-list")
    def on_branch_selected(self) -> None:
        self.query_one("#name-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "create":
            self._submit()
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class MergeTargetScreen(ModalScreen[Optional[str]]):
    """Pick the branch (checked out in some worktree) to merge into."""

    DEFAULT_CSS = DIALOG_CSS.format(name="MergeTargetScreen") + """
    #target-list {
        height: auto;
        max-height: 15;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, source_branch: str, targets: List[str]):
        super().__init__()
        self.source_branch = source_branch
        self.targets = targets

    def compose(self) -> ComposeResult:
        with Container(id="MergeTargetScreen-dialog"):
            yield Label(f"Merge {self.source_branch} into:", classes="dialog-title")
            yield OptionList(*[Option(Text(name)) for name in self.targets], id="target-list")

    def on_mount(self) -> None:
        self.query_one("#target-list", OptionList).focus()

    @on(OptionList.OptionSelected, "#target-list")
    def on_target_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(self.targets[event.option_index])

    def action_cancel(self) -> None:
        self.dismiss(None)
