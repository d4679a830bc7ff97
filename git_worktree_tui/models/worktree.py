"""Worktree data models."""

import os
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from git_worktree_tui.constants import DETACHED_PLACEHOLDER, SHORT_HASH_LENGTH


@dataclass(frozen=True)
class WorktreeStatus:
    """Change counts for one worktree."""

    modified: int = 0
    staged: int = 0
    untracked: int = 0
    ahead: int = 0
    behind: int = 0

    @property
    def is_clean(self) -> bool:
        """True when there are no file changes (ahead/behind not considered)."""
        return self.modified == 0 and self.staged == 0 and self.untracked == 0

    def summary(self) -> str:
        """Compact status string, e.g. ``+1 ~2 ?3 ↑1`` or ``clean``."""
        if self.is_clean and self.ahead == 0 and self.behind == 0:
            return "clean"

        parts = []
        if self.staged:
            parts.append(f"+{self.staged}")
        if self.modified:
            parts.append(f"~{self.modified}")
        if self.untracked:
            parts.append(f"?{self.untracked}")
        if self.ahead:
            parts.append(f"↑{self.ahead}")
        if self.behind:
            parts.append(f"↓{self.behind}")
        return " ".join(parts)


@dataclass(frozen=True)
class CommitInfo:
    """One entry of a worktree's recent history."""

    hash: str
    message: str
    relative_age: str


@dataclass(frozen=True)
class HeadInfo:
    """Resolved HEAD of a repository handle."""

    branch: Optional[str]  # None = detached (or unborn without a symbolic ref)
    commit_id: str  # Empty for an unborn branch


@dataclass(frozen=True)
class WorktreeIdentity:
    """Structural facts about a worktree, as reported by the repository."""

    path: str
    branch: Optional[str]
    commit_id: str
    is_detached: bool = False
    is_bare: bool = False
    is_locked: bool = False
    lock_reason: Optional[str] = None


@dataclass(frozen=True)
class MainOrigin:
    """The repository's primary working directory (or the bare repository)."""

    identity: WorktreeIdentity


@dataclass(frozen=True)
class LinkedOrigin:
    """A worktree added with ``git worktree add``."""

    identity: WorktreeIdentity


WorktreeOrigin = Union[MainOrigin, LinkedOrigin]


@dataclass(frozen=True)
class WorktreeDetails:
    """Output of the detail fetch for a single worktree."""

    status: WorktreeStatus = field(default_factory=WorktreeStatus)
    commit_summary: Optional[str] = None
    commit_time: Optional[int] = None
    recent_commits: Tuple[CommitInfo, ...] = ()


@dataclass(frozen=True)
class WorktreeRecord:
    """Everything the dashboard knows about one worktree.

    Records are rebuilt from scratch on every refresh and never edited in
    place; use :func:`dataclasses.replace` to derive a new one.
    """

    path: str
    branch: Optional[str]
    commit_id: str
    commit_id_short: str
    commit_summary: Optional[str] = None
    commit_time: Optional[int] = None
    is_main: bool = False
    is_current: bool = False
    is_bare: bool = False
    is_detached: bool = False
    is_locked: bool = False
    lock_reason: Optional[str] = None
    is_prunable: bool = False
    status: WorktreeStatus = field(default_factory=WorktreeStatus)
    recent_commits: Tuple[CommitInfo, ...] = ()

    @property
    def display_name(self) -> str:
        """Branch name, or the detached placeholder."""
        return self.branch if self.branch else DETACHED_PLACEHOLDER

    @property
    def identity_key(self) -> Tuple[str, str]:
        """Stable identity used to keep the selection across refreshes."""
        if self.branch:
            return ("branch", self.branch)
        return ("path", self.path)

    @property
    def needs_details(self) -> bool:
        """Bare and prunable worktrees are never inspected."""
        return not (self.is_bare or self.is_prunable)

    def with_details(self, details: WorktreeDetails) -> "WorktreeRecord":
        """Return a copy carrying the fetched details."""
        if not self.needs_details:
            return self
        return replace(
            self,
            status=details.status,
            commit_summary=details.commit_summary,
            commit_time=details.commit_time,
            recent_commits=tuple(details.recent_commits),
        )

    def __str__(self) -> str:
        """String representation of worktree."""
        main_marker = " (main)" if self.is_main else ""
        return f"{self.display_name} @ {self.path}{main_marker} [{self.status.summary()}]"


def is_within(current_path: Optional[str], worktree_path: str) -> bool:
    """True if ``current_path`` is ``worktree_path`` or lies beneath it."""
    if not current_path or not worktree_path:
        return False
    current = os.path.normcase(os.path.abspath(current_path))
    base = os.path.normcase(os.path.abspath(worktree_path))
    if current == base:
        return True
    return current.startswith(base.rstrip(os.sep) + os.sep)


def create_record(origin: WorktreeOrigin, current_path: Optional[str] = None) -> WorktreeRecord:
    """Build the base record (no details yet) for a main or linked worktree."""
    identity = origin.identity
    is_main = isinstance(origin, MainOrigin)
    return WorktreeRecord(
        path=identity.path,
        branch=identity.branch,
        commit_id=identity.commit_id,
        commit_id_short=identity.commit_id[:SHORT_HASH_LENGTH],
        is_main=is_main,
        is_current=is_within(current_path, identity.path),
        is_bare=identity.is_bare and is_main,
        is_detached=identity.is_detached,
        is_locked=identity.is_locked,
        lock_reason=identity.lock_reason,
        is_prunable=not os.path.exists(identity.path),
    )


def with_current_path(records: List[WorktreeRecord], current_path: Optional[str]) -> List[WorktreeRecord]:
    """Recompute ``is_current`` for every record against ``current_path``."""
    return [replace(r, is_current=is_within(current_path, r.path)) for r in records]
