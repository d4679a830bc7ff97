"""Textual screens and widgets for the worktree dashboard."""
