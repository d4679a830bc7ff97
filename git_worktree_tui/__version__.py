"""Version information for git-worktree-tui."""

try:
    from git_worktree_tui._version import __version__
except ImportError:
    # Fallback for development without tags or when running from source
    __version__ = "0.0.0+unknown"
