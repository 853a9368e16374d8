"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
codebase more testable and maintainable.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit (tests/fakes/git.py): In-memory implementation for tests

Only the operations grove's registry and merge assist need are declared here.
Operations that mutate the repository raise GitCommandError on failure; query
operations return None/False instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a single git worktree.

    Attributes:
        path: Worktree directory as reported by git
        branch: Checked-out branch name, or None when HEAD is detached
        head: Commit SHA of HEAD (empty for a bare entry)
        is_root: True for the first entry, which git guarantees is the main checkout
    """

    path: Path
    branch: str | None
    head: str = ""
    is_root: bool = False


def find_worktree_at_path(worktrees: list[WorktreeInfo], path: Path) -> WorktreeInfo | None:
    """Find the worktree whose resolved path equals ``path`` resolved."""
    target = path.resolve()
    for wt in worktrees:
        if wt.path.resolve() == target:
            return wt
    return None


# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository."""
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None when detached."""
        ...

    @abstractmethod
    def get_git_common_dir(self, cwd: Path) -> Path | None:
        """Get the absolute common git directory shared by all worktrees.

        Returns None when ``cwd`` is not inside a git repository.
        """
        ...

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the worktree containing ``cwd``."""
        ...

    @abstractmethod
    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check whether ``branch`` (or any ref spelled that way) verifies locally."""
        ...

    @abstractmethod
    def remote_branch_exists(self, repo_root: Path, remote: str, branch: str) -> bool:
        """Check whether the remote-tracking ref ``<remote>/<branch>`` exists."""
        ...

    @abstractmethod
    def fetch_branch(self, repo_root: Path, remote: str, branch: str) -> None:
        """Fetch a specific branch from a remote."""
        ...

    @abstractmethod
    def add_worktree(
        self,
        repo_root: Path,
        path: Path,
        *,
        branch: str,
        base: str | None,
        create_branch: bool,
    ) -> None:
        """Add a new git worktree at ``path`` with ``branch`` checked out.

        Args:
            repo_root: Path to the repository root
            path: Directory to create the worktree in
            branch: Branch to check out (created when create_branch is True)
            base: Start point for a newly created branch (defaults to HEAD)
            create_branch: Whether to create ``branch`` with ``-b``
        """
        ...

    @abstractmethod
    def remove_worktree(self, repo_root: Path, path: Path, *, force: bool) -> None:
        """Remove a worktree."""
        ...

    @abstractmethod
    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch."""
        ...

    @abstractmethod
    def has_uncommitted_changes(self, cwd: Path) -> bool:
        """Check if a worktree has uncommitted changes (including untracked files)."""
        ...

    @abstractmethod
    def merge(self, cwd: Path, ref: str) -> None:
        """Merge ``ref`` into the branch checked out at ``cwd``."""
        ...

    @abstractmethod
    def rebase(self, cwd: Path, ref: str) -> None:
        """Rebase the branch checked out at ``cwd`` onto ``ref``."""
        ...

    @abstractmethod
    def get_head_commit(self, cwd: Path) -> str:
        """Get the full SHA of HEAD at ``cwd``."""
        ...

    @abstractmethod
    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch in the given directory."""
        ...

    @abstractmethod
    def reset_hard(self, cwd: Path, commit: str) -> None:
        """Reset the checked-out branch, index and working tree at ``cwd`` to ``commit``."""
        ...

    @abstractmethod
    def get_short_status(self, cwd: Path) -> str:
        """Get ``git status --porcelain -z`` output for ``cwd``."""
        ...

    @abstractmethod
    def prune_worktrees(self, repo_root: Path) -> None:
        """Drop git's metadata for worktrees whose directory no longer exists."""
        ...
