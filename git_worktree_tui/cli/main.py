"""Entry point for git-worktree-tui."""

import os
import sys
from typing import List, Optional

from rich.console import Console

from git_worktree_tui.cli.args import parse_args
from git_worktree_tui.config import Config
from git_worktree_tui.core.worktree_keeper import WorktreeKeeper
from git_worktree_tui.exceptions import NotARepositoryError, WorktreeTuiError
from git_worktree_tui.logging_config import get_logger, setup_logging
from git_worktree_tui.services.display_service import display_worktree_table
from git_worktree_tui.services.git import discover_repo_root
from git_worktree_tui.utils.threading import get_threading_info

console = Console()
logger = get_logger(__name__)


def write_cwd_file(cwd_file: str, path: str) -> None:
    """Write the chosen worktree path for the calling shell to ``cd`` into."""
    with open(os.path.expanduser(cwd_file), "w", encoding="utf-8") as f:
        f.write(path)
    logger.debug(f"Wrote {path} to {cwd_file}")


def _print_debug_info(config: Config, log_file) -> None:
    console.print("[yellow]Debug mode enabled[/yellow]")

    threading_info = get_threading_info()
    console.print("[yellow]Threading Information:[/yellow]")
    console.print(f"  Python version: {threading_info['python_version']}")
    console.print(f"  Threading mode: {threading_info['mode']}")
    console.print(f"  CPU count: {threading_info['cpu_count']}")
    console.print(f"  Optimal workers: {threading_info['optimal_workers']}")
    console.print(f"  Free-threading enabled: {threading_info['free_threading']}")

    console.print("[yellow]Configuration:[/yellow]")
    for key, value in config.to_dict().items():
        console.print(f"  {key}: {value}")
    console.print(f"[dim]Log file: {log_file}[/dim]")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)

        tui_mode = not parsed_args.list
        log_file = setup_logging(
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
            tui_mode=tui_mode,
            log_file=parsed_args.log_file,
        )

        config = Config(
            refresh=parsed_args.refresh,
            sort_order=parsed_args.sort,
            workers=parsed_args.workers,
            show_recent_commits=not parsed_args.no_recent_commits,
            cwd_file=parsed_args.cwd_file,
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
        )

        if parsed_args.debug:
            _print_debug_info(config, log_file)

        start_path = os.path.abspath(parsed_args.path or os.getcwd())
        try:
            repo_root = discover_repo_root(start_path)
        except NotARepositoryError:
            console.print(f"[red]Error: {start_path} is not inside a git repository[/red]")
            return 1

        keeper = WorktreeKeeper(repo_root, config, current_path=start_path)
        if config.refresh:
            keeper.clear_cache()

        if not tui_mode:
            records = keeper.fetch_all_worktrees()
            keeper.save_cache(records)
            display_worktree_table(records, console)
            return 0

        # Imported here so --list never pays for loading Textual
        from git_worktree_tui.tui import WorktreeApp

        app = WorktreeApp(keeper)
        selected_path = app.run()

        if selected_path and config.cwd_file:
            write_cwd_file(config.cwd_file, selected_path)
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except (WorktreeTuiError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
