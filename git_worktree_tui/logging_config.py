"""Logging configuration for git-worktree-tui"""
import logging
import sys
from pathlib import Path
from typing import Optional

APP_DIR = Path.home() / '.git-worktree-tui'
LOG_FILE_NAME = 'git-worktree-tui.log'


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels in terminal output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record):
        """Format log record with colors if in a terminal."""
        if sys.stderr.isatty():
            levelname = record.levelname
            if levelname in self.COLORS:
                record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    tui_mode: bool = False,
    log_file: Optional[str] = None,
) -> Path:
    """
    Configure logging for the application.

    The terminal belongs to the dashboard while it runs, so in TUI mode
    everything goes to a log file instead of stderr.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and detailed formatting
        tui_mode: If True, always log to file (since TUI hides console output)
        log_file: Where to write the log (default ~/.git-worktree-tui/git-worktree-tui.log)

    Returns:
        Path of the log file (written only in TUI or debug mode)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    # Handlers decide what is written; the root logger lets everything through in TUI mode
    if tui_mode:
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_path = Path(log_file).expanduser() if log_file else APP_DIR / LOG_FILE_NAME
    if tui_mode or debug:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    if not tui_mode:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)

        if debug:
            formatter = ColoredFormatter(
                fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            formatter = ColoredFormatter(
                fmt='[%(name)s] %(message)s'
            )

        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # GitPython logs every spawned git process at DEBUG; asyncio is noisy under Textual
    logging.getLogger('git.cmd').setLevel(logging.INFO)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance
    """
    # Strip the package prefix for cleaner log names
    if name.startswith('git_worktree_tui.'):
        name = name.replace('git_worktree_tui.', '')
    if name.startswith('services.'):
        name = name.replace('services.', '')

    return logging.getLogger(name)
