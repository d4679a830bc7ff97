"""Command-line argument parsing for git-worktree-tui."""

import argparse
from typing import List, Optional

from git_worktree_tui.__version__ import __version__
from git_worktree_tui.config import SORT_ORDERS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wtt",
        description="Terminal dashboard for the worktrees of a git repository",
        epilog="Shell integration: wtt() { f=$(mktemp); git-worktree-tui --cwd-file \"$f\" \"$@\"; "
        "d=$(cat \"$f\"); rm -f \"$f\"; [ -n \"$d\" ] && cd \"$d\"; }",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"git-worktree-tui {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "--path",
        default=None,
        help="Directory inside the repository to inspect (default: current directory)",
    )
    parser.add_argument("--refresh", action="store_true", help="Ignore and clear the cache at startup")
    parser.add_argument(
        "--sort",
        choices=SORT_ORDERS,
        default="recent",
        help="Initial sort order (default: recent)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of parallel workers for detail fetching (default: auto-detect based on CPU and threading mode)",
    )
    parser.add_argument(
        "--no-recent-commits",
        action="store_true",
        help="Hide the recent commits panel at startup",
    )
    parser.add_argument(
        "--cwd-file",
        metavar="FILE",
        help="Write the path chosen with space to FILE on exit",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Write the log to FILE (default: ~/.git-worktree-tui/git-worktree-tui.log)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the worktree table and exit (non-interactive)",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
