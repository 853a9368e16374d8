"""Merge assist: integrate a target ref into a tree without touching the tree.

The merge or rebase runs in a throwaway staging worktree under
``.grove/trees/.merge-assist/``. Only when it finished cleanly, and only when
asked to, the source branch is moved to the result and the source tree is
reset to it. The staging worktree is never written to the registry.

Staging is kept whenever the attempt failed (conflicts or otherwise) so the
user can inspect it, and on success when ``keep_temp`` is requested.
"""

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from grove.core.errors import ErrorKind, GitCommandError, GroveError, git_failure
from grove.core.git.abc import Git
from grove.core.naming import sanitize_for_branch, sanitize_for_path, to_base36, validate_tree_name
from grove.core.registry import TreeInfo
from grove.core.time.abc import Time
from grove.core.tree_registry import TreeRegistry, tree_not_found

logger = logging.getLogger(__name__)

CONFLICT_STATUS_CODES = frozenset({"AA", "DD", "UU", "UD", "DU", "UA", "AU"})
STAGING_BRANCH_PREFIX = "grove/merge/"


class Strategy(Enum):
    MERGE = "merge"
    REBASE = "rebase"


@dataclass(frozen=True)
class ConflictEntry:
    status: str
    path: str


@dataclass(frozen=True)
class StagingWorktree:
    path: Path
    branch_name: str
    source_tree_name: str
    target_ref: str


@dataclass(frozen=True)
class SourceInfo:
    name: str
    branch: str
    path: Path


@dataclass(frozen=True)
class TargetInfo:
    """How the ``target`` argument was resolved.

    Attributes:
        input: The argument as given
        branch: Branch name the target resolved to
        tree: Tree name when ``input`` named a managed tree
        ref: Ref actually integrated (``<remote>/<branch>`` when only the
            remote-tracking ref exists)
    """

    input: str
    branch: str
    tree: str | None
    ref: str


@dataclass(frozen=True)
class IntegrationOutcome:
    ok: bool
    strategy: Strategy
    applied: bool = False
    source: SourceInfo | None = None
    target: TargetInfo | None = None
    staging: StagingWorktree | None = None
    staging_kept: bool = False
    conflicts: list[ConflictEntry] = field(default_factory=list)
    result_commit: str | None = None
    error: GroveError | None = None
    warnings: list[str] = field(default_factory=list)


def parse_conflicts(status_output: str) -> list[ConflictEntry]:
    """Extract unmerged paths from ``git status --porcelain -z`` output, in order.

    Records are NUL-terminated and paths are never quoted. Rename and copy
    records carry the original path as an extra record, which is skipped.
    """
    conflicts: list[ConflictEntry] = []
    records = iter(status_output.split("\0"))
    for record in records:
        if len(record) < 4:
            continue
        code = record[:2]
        if "R" in code or "C" in code:
            next(records, None)
        if code in CONFLICT_STATUS_CODES:
            conflicts.append(ConflictEntry(status=code, path=record[3:]))
    return conflicts


def continue_command(strategy: Strategy) -> str:
    if strategy is Strategy.REBASE:
        return "git status && git rebase --continue"
    return "git status && git merge --continue"


class IntegrationEngine:
    """Runs merge assist attempts for one grove."""

    def __init__(self, *, trees: TreeRegistry, git: Git, time: Time, remote: str) -> None:
        self._trees = trees
        self._git = git
        self._time = time
        self._remote = remote

    def merge_assist(
        self,
        source_name: str,
        target: str,
        *,
        strategy: Strategy = Strategy.MERGE,
        apply: bool = False,
        keep_temp: bool = False,
        fetch: bool = True,
    ) -> IntegrationOutcome:
        invalid = validate_tree_name(source_name)
        if invalid is not None:
            return IntegrationOutcome(ok=False, strategy=strategy, error=invalid)

        registry = self._trees.read()
        source_tree = registry.trees.get(source_name)
        if source_tree is None:
            return IntegrationOutcome(
                ok=False, strategy=strategy, error=tree_not_found(source_name, registry)
            )
        source = SourceInfo(name=source_name, branch=source_tree.branch, path=source_tree.path)

        if not source_tree.path.exists():
            return IntegrationOutcome(
                ok=False,
                strategy=strategy,
                source=source,
                error=GroveError(
                    kind=ErrorKind.TREE_PATH_MISSING,
                    message=(
                        f"Tree '{source_name}' points to {source_tree.path}, "
                        "but it does not exist on disk"
                    ),
                    hint="Run 'grove doctor --fix'",
                ),
            )

        if source_name == target:
            return IntegrationOutcome(
                ok=False,
                strategy=strategy,
                source=source,
                error=GroveError(
                    kind=ErrorKind.INVALID_ARGUMENTS,
                    message="Source and target must be different",
                ),
            )

        target_tree: TreeInfo | None = registry.trees.get(target)
        target_branch = target_tree.branch if target_tree is not None else target
        target_tree_name = target if target_tree is not None else None

        repo_root = self._trees.layout.root
        if apply:
            try:
                dirty = self._git.has_uncommitted_changes(source_tree.path)
            except GitCommandError as e:
                return IntegrationOutcome(
                    ok=False, strategy=strategy, source=source, error=git_failure(e)
                )
            if dirty:
                return IntegrationOutcome(
                    ok=False,
                    strategy=strategy,
                    source=source,
                    error=GroveError(
                        kind=ErrorKind.DIRTY_TREE,
                        message=f"Tree '{source_name}' has uncommitted changes",
                        hint="Commit or stash them before using --apply",
                    ),
                )

        warnings: list[str] = []
        if fetch:
            try:
                self._git.fetch_branch(repo_root, self._remote, target_branch)
            except GitCommandError as e:
                logger.warning("Could not fetch %s/%s: %s", self._remote, target_branch, e)
                warnings.append(
                    f"Could not fetch {self._remote}/{target_branch}; using local refs"
                )

        target_ref = self._resolve_target_ref(repo_root, target_branch)
        if target_ref is None:
            return IntegrationOutcome(
                ok=False,
                strategy=strategy,
                source=source,
                warnings=warnings,
                error=GroveError(
                    kind=ErrorKind.TARGET_REF_NOT_FOUND,
                    message=f"Branch '{target_branch}' not found",
                    hint="Create it or pass the name of a tree",
                ),
            )
        resolved_target = TargetInfo(
            input=target, branch=target_branch, tree=target_tree_name, ref=target_ref
        )

        staging = self._staging_for(source, target_branch)
        try:
            self._trees.layout.staging_dir.mkdir(parents=True, exist_ok=True)
            self._git.add_worktree(
                repo_root,
                staging.path,
                branch=staging.branch_name,
                base=source.branch,
                create_branch=True,
            )
        except GitCommandError as e:
            return IntegrationOutcome(
                ok=False,
                strategy=strategy,
                source=source,
                target=resolved_target,
                warnings=warnings,
                error=git_failure(e),
            )
        logger.debug("Created staging worktree %s on %s", staging.path, staging.branch_name)

        try:
            if strategy is Strategy.REBASE:
                self._git.rebase(staging.path, target_ref)
            else:
                self._git.merge(staging.path, target_ref)
        except GitCommandError as e:
            return self._integration_failed(
                e, strategy, source, resolved_target, staging, warnings
            )

        try:
            result_commit = self._git.get_head_commit(staging.path)
            if apply:
                self._apply_back(source, result_commit)
        except GitCommandError as e:
            # The result is only reachable from the staging branch now
            return IntegrationOutcome(
                ok=False,
                strategy=strategy,
                source=source,
                target=resolved_target,
                staging=staging,
                staging_kept=True,
                warnings=warnings,
                error=git_failure(
                    e,
                    hint=(
                        f"The integrated result is on '{staging.branch_name}'; "
                        f"'{source.branch}' was not moved"
                    ),
                ),
            )

        if not keep_temp:
            self._cleanup(repo_root, staging)

        logger.debug("Merge assist of '%s' onto '%s' -> %s", source_name, target_ref, result_commit)
        return IntegrationOutcome(
            ok=True,
            strategy=strategy,
            applied=apply,
            source=source,
            target=resolved_target,
            staging=staging,
            staging_kept=keep_temp,
            result_commit=result_commit,
            warnings=warnings,
        )

    def _resolve_target_ref(self, repo_root: Path, branch: str) -> str | None:
        if self._git.branch_exists(repo_root, branch):
            return branch
        if self._git.remote_branch_exists(repo_root, self._remote, branch):
            return f"{self._remote}/{branch}"
        return None

    def _staging_for(self, source: SourceInfo, target_branch: str) -> StagingWorktree:
        millis = int(self._time.now().timestamp() * 1000)
        stamp = to_base36(millis)
        dir_name = (
            f"{sanitize_for_path(source.name)}-onto-{sanitize_for_path(target_branch)}-{stamp}"
        )
        branch_name = STAGING_BRANCH_PREFIX + sanitize_for_branch(
            f"{source.branch}-onto-{target_branch}-{stamp}"
        )
        return StagingWorktree(
            path=self._trees.layout.staging_dir / dir_name,
            branch_name=branch_name,
            source_tree_name=source.name,
            target_ref=target_branch,
        )

    def _integration_failed(
        self,
        error: GitCommandError,
        strategy: Strategy,
        source: SourceInfo,
        target: TargetInfo,
        staging: StagingWorktree,
        warnings: list[str],
    ) -> IntegrationOutcome:
        try:
            conflicts = parse_conflicts(self._git.get_short_status(staging.path))
        except GitCommandError as status_error:
            logger.warning("Could not read status of %s: %s", staging.path, status_error)
            conflicts = []

        if conflicts:
            grove_error = GroveError(
                kind=ErrorKind.CONFLICT_DETECTED,
                message=(
                    f"{strategy.value.capitalize()} of '{target.branch}' into "
                    f"'{source.branch}' stopped with {len(conflicts)} conflict(s)"
                ),
                hint=f"cd {staging.path}\n{continue_command(strategy)}",
            )
        else:
            grove_error = git_failure(error, hint=f"Staging worktree kept at {staging.path}")

        return IntegrationOutcome(
            ok=False,
            strategy=strategy,
            source=source,
            target=target,
            staging=staging,
            staging_kept=True,
            conflicts=conflicts,
            warnings=warnings,
            error=grove_error,
        )

    def _apply_back(self, source: SourceInfo, commit: str) -> None:
        """Move the source branch and tree to ``commit`` together.

        ``reset --hard`` on the checked-out branch updates the ref and the
        working tree in one step.
        """
        self._git.checkout_branch(source.path, source.branch)
        self._git.reset_hard(source.path, commit)
        logger.debug("Applied %s to '%s'", commit, source.name)

    def _cleanup(self, repo_root: Path, staging: StagingWorktree) -> None:
        """Remove the staging worktree and branch. Failures are only logged."""
        try:
            self._git.remove_worktree(repo_root, staging.path, force=True)
        except GitCommandError as e:
            logger.warning("Could not remove staging worktree %s: %s", staging.path, e)
            if staging.path.exists():
                shutil.rmtree(staging.path, ignore_errors=True)
            try:
                self._git.prune_worktrees(repo_root)
            except GitCommandError as prune_error:
                logger.warning("git worktree prune failed: %s", prune_error)

        try:
            self._git.delete_branch(repo_root, staging.branch_name, force=True)
        except GitCommandError as e:
            logger.warning("Could not delete staging branch '%s': %s", staging.branch_name, e)
