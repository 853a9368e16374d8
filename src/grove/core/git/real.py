"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import subprocess
from pathlib import Path

from grove.core.git.abc import Git, WorktreeInfo
from grove.core.subprocess import run_subprocess_with_context

# ============================================================================
# Production Implementation
# ============================================================================


def _run_quiet(cmd: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=False)


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository."""
        result = run_subprocess_with_context(
            ["git", "worktree", "list", "--porcelain"],
            operation_context="list worktrees",
            cwd=repo_root,
        )

        worktrees: list[WorktreeInfo] = []
        current_path: Path | None = None
        current_branch: str | None = None
        current_head = ""

        for line in result.stdout.splitlines():
            line = line.strip()
            if line.startswith("worktree "):
                current_path = Path(line.split(maxsplit=1)[1])
                current_branch = None
                current_head = ""
            elif line.startswith("HEAD "):
                current_head = line.split(maxsplit=1)[1]
            elif line.startswith("branch "):
                if current_path is None:
                    continue
                branch_ref = line.split(maxsplit=1)[1]
                current_branch = branch_ref.replace("refs/heads/", "", 1)
            elif line == "" and current_path is not None:
                worktrees.append(
                    WorktreeInfo(path=current_path, branch=current_branch, head=current_head)
                )
                current_path = None
                current_branch = None
                current_head = ""

        if current_path is not None:
            worktrees.append(
                WorktreeInfo(path=current_path, branch=current_branch, head=current_head)
            )

        # Mark first worktree as root (git guarantees this ordering)
        if worktrees:
            first = worktrees[0]
            worktrees[0] = WorktreeInfo(
                path=first.path, branch=first.branch, head=first.head, is_root=True
            )

        return worktrees

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = _run_quiet(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd)
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if branch == "HEAD":
            return None

        return branch

    def get_git_common_dir(self, cwd: Path) -> Path | None:
        """Get the common git directory."""
        if not cwd.exists():
            return None
        result = _run_quiet(["git", "rev-parse", "--git-common-dir"], cwd)
        if result.returncode != 0:
            return None

        git_dir = Path(result.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = cwd / git_dir
        return git_dir.resolve()

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the current worktree."""
        if not cwd.exists():
            return None
        result = _run_quiet(["git", "rev-parse", "--show-toplevel"], cwd)
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip())

    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check whether a ref verifies locally."""
        result = _run_quiet(["git", "rev-parse", "--verify", "--quiet", branch], repo_root)
        return result.returncode == 0

    def remote_branch_exists(self, repo_root: Path, remote: str, branch: str) -> bool:
        """Check whether a remote-tracking ref exists."""
        result = _run_quiet(
            ["git", "rev-parse", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}"],
            repo_root,
        )
        return result.returncode == 0

    def fetch_branch(self, repo_root: Path, remote: str, branch: str) -> None:
        """Fetch a specific branch from a remote."""
        run_subprocess_with_context(
            ["git", "fetch", remote, branch],
            operation_context=f"fetch branch '{branch}' from remote '{remote}'",
            cwd=repo_root,
        )

    def add_worktree(
        self,
        repo_root: Path,
        path: Path,
        *,
        branch: str,
        base: str | None,
        create_branch: bool,
    ) -> None:
        """Add a new git worktree."""
        if create_branch:
            cmd = ["git", "worktree", "add", "-b", branch, str(path)]
            if base:
                cmd.append(base)
            context = f"add worktree with new branch '{branch}' at {path}"
        else:
            cmd = ["git", "worktree", "add", str(path), branch]
            context = f"add worktree for branch '{branch}' at {path}"

        run_subprocess_with_context(cmd, operation_context=context, cwd=repo_root)

    def remove_worktree(self, repo_root: Path, path: Path, *, force: bool) -> None:
        """Remove a worktree."""
        cmd = ["git", "worktree", "remove"]
        if force:
            cmd.append("--force")
        cmd.append(str(path))
        run_subprocess_with_context(
            cmd,
            operation_context=f"remove worktree at {path}",
            cwd=repo_root,
        )

    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch."""
        flag = "-D" if force else "-d"
        run_subprocess_with_context(
            ["git", "branch", flag, branch],
            operation_context=f"delete branch '{branch}'",
            cwd=repo_root,
        )

    def has_uncommitted_changes(self, cwd: Path) -> bool:
        """Check if a worktree has uncommitted changes."""
        result = run_subprocess_with_context(
            ["git", "status", "--porcelain"],
            operation_context=f"check status of {cwd}",
            cwd=cwd,
        )
        return bool(result.stdout.strip())

    def merge(self, cwd: Path, ref: str) -> None:
        """Merge a ref into the current branch."""
        run_subprocess_with_context(
            ["git", "merge", "--no-edit", ref],
            operation_context=f"merge '{ref}'",
            cwd=cwd,
        )

    def rebase(self, cwd: Path, ref: str) -> None:
        """Rebase the current branch onto a ref."""
        run_subprocess_with_context(
            ["git", "rebase", ref],
            operation_context=f"rebase onto '{ref}'",
            cwd=cwd,
        )

    def get_head_commit(self, cwd: Path) -> str:
        """Get the SHA of HEAD."""
        result = run_subprocess_with_context(
            ["git", "rev-parse", "HEAD"],
            operation_context="read HEAD commit",
            cwd=cwd,
        )
        return result.stdout.strip()

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch in the given directory."""
        run_subprocess_with_context(
            ["git", "checkout", branch],
            operation_context=f"checkout branch '{branch}'",
            cwd=cwd,
        )

    def reset_hard(self, cwd: Path, commit: str) -> None:
        """Hard reset to a commit."""
        run_subprocess_with_context(
            ["git", "reset", "--hard", commit],
            operation_context=f"reset to {commit}",
            cwd=cwd,
        )

    def get_short_status(self, cwd: Path) -> str:
        """Get NUL-terminated porcelain status output."""
        result = run_subprocess_with_context(
            ["git", "status", "--porcelain", "-z"],
            operation_context=f"read status of {cwd}",
            cwd=cwd,
        )
        return result.stdout

    def prune_worktrees(self, repo_root: Path) -> None:
        """Prune stale worktree metadata."""
        run_subprocess_with_context(
            ["git", "worktree", "prune"],
            operation_context="prune worktree metadata",
            cwd=repo_root,
        )
