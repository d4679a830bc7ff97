"""Services for git-worktree-tui."""
