"""Manage parallel git worktrees."""
