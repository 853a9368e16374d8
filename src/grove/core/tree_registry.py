"""Tree lifecycle: plant, tend, uproot, adopt, prune and doctor.

Every operation reads the registry, talks to git, and writes the registry back
through ConfigStore.update(). Expected failures come back as GroveError values;
exceptions escape only for conditions the caller cannot act on.

Invariants kept after every successful operation:
- ``main`` is a tree
- ``current`` is None or a tree
- no two trees share a resolved path
- every tree but ``main`` lives under ``.grove/trees/``
- the ``current`` link resolves to the current tree's path
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from grove.core.active_link import (
    inspect_active_link,
    point_active_link,
    read_link_target,
    remove_active_link,
    sync_active_link,
)
from grove.core.config_store import ConfigStore
from grove.core.errors import (
    ConcurrentUpdateError,
    ErrorKind,
    GitCommandError,
    GroveError,
    git_failure,
)
from grove.core.git.abc import Git, find_worktree_at_path
from grove.core.naming import derive_tree_name, validate_tree_name
from grove.core.previews import PreviewTable, Processes
from grove.core.registry import MAIN_TREE, Registry, TreeInfo, choose_current, new_registry
from grove.core.repo_discovery import GroveLayout
from grove.core.time.abc import Time

logger = logging.getLogger(__name__)

GITIGNORE_ENTRIES = (".grove/", "current")


# ============================================================================
# Results
# ============================================================================


@dataclass(frozen=True)
class InitResult:
    root: Path
    main_branch: str
    already_initialized: bool
    gitignore_updated: bool


@dataclass(frozen=True)
class PlantResult:
    """Outcome of a successful plant.

    ``switch_error`` is set when the tree was planted but could not be made
    current; the tree stays registered in that case.
    """

    name: str
    tree: TreeInfo
    created_branch: bool
    fetched: bool
    switched: bool
    switch_error: GroveError | None = None


@dataclass(frozen=True)
class TendResult:
    name: str
    tree: TreeInfo
    already_current: bool
    previous: str | None


@dataclass(frozen=True)
class UprootResult:
    name: str
    tree: TreeInfo
    was_current: bool
    new_current: str | None
    stopped_preview: bool
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AdoptResult:
    name: str
    tree: TreeInfo
    switched: bool
    switch_error: GroveError | None = None


@dataclass(frozen=True)
class PruneResult:
    dry_run: bool
    pruned_trees: list[str]
    pruned_previews: list[str]
    current: str | None
    current_changed: bool
    warnings: list[str] = field(default_factory=list)


class IssueKind(Enum):
    MISSING_TREES = "missing_trees"
    STALE_PREVIEWS = "stale_previews"
    INVALID_CURRENT_SYMLINK = "invalid_current_symlink"
    CURRENT_MISMATCH = "current_mismatch"
    CURRENT_MISSING = "current_missing"


@dataclass(frozen=True)
class DoctorIssue:
    kind: IssueKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DoctorReport:
    """Findings of a health check, and what ``--fix`` did about them.

    When ``fixed`` is False the pruned lists are empty and ``current`` is the
    registry's current tree as found.
    """

    issues: list[DoctorIssue]
    fixed: bool
    pruned_trees: list[str]
    pruned_previews: list[str]
    current: str | None
    warnings: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.issues


# ============================================================================
# Helpers
# ============================================================================


def tree_not_found(name: str, registry: Registry) -> GroveError:
    available = registry.tree_names()
    return GroveError(
        kind=ErrorKind.TREE_NOT_FOUND,
        message=f"Tree '{name}' not found",
        hint=f"Available trees: {', '.join(available)}" if available else None,
        details={"available": available},
    )


def _concurrent_update(error: ConcurrentUpdateError) -> GroveError:
    return GroveError(
        kind=ErrorKind.CONCURRENT_UPDATE,
        message=str(error),
        hint="Another grove command changed the registry. Re-run this command.",
    )


class TreeRegistry:
    """State machine over the trees of one grove."""

    def __init__(
        self,
        *,
        layout: GroveLayout,
        store: ConfigStore,
        git: Git,
        time: Time,
        processes: Processes,
        remote: str,
    ) -> None:
        self._layout = layout
        self._store = store
        self._git = git
        self._time = time
        self._processes = processes
        self._remote = remote

    @property
    def layout(self) -> GroveLayout:
        return self._layout

    def read(self) -> Registry:
        return self._store.read()

    def previews(self, registry: Registry) -> PreviewTable:
        return PreviewTable(registry, self._processes)

    def _now(self) -> str:
        return self._time.now().isoformat()

    def _persist(self, fn: Callable[[Registry], Registry]) -> Registry | GroveError:
        try:
            return self._store.update(fn)
        except ConcurrentUpdateError as e:
            return _concurrent_update(e)

    # ------------------------------------------------------------------
    # init
    # ------------------------------------------------------------------

    def initialize(self) -> InitResult | GroveError:
        """Register the repository checkout as tree ``main`` and make it current.

        Running it on an initialized grove changes nothing.
        """
        root = self._layout.root
        if self._store.exists():
            registry = self._store.read()
            main = registry.trees.get(MAIN_TREE)
            return InitResult(
                root=root,
                main_branch=main.branch if main is not None else "",
                already_initialized=True,
                gitignore_updated=False,
            )

        branch = self._git.get_current_branch(root) or "HEAD"
        registry = new_registry(root, branch, self._now())

        self._layout.trees_dir.mkdir(parents=True, exist_ok=True)
        self._layout.shared_dir.mkdir(parents=True, exist_ok=True)
        self._store.write(registry)
        logger.debug("Initialized grove at %s on branch %s", root, branch)

        try:
            point_active_link(self._layout, root)
        except OSError as e:
            return GroveError(
                kind=ErrorKind.ACTIVE_LINK_FAILED,
                message=f"Could not create {self._layout.link_path}: {e}",
            )

        return InitResult(
            root=root,
            main_branch=branch,
            already_initialized=False,
            gitignore_updated=_ensure_gitignore_entries(root / ".gitignore"),
        )

    # ------------------------------------------------------------------
    # plant
    # ------------------------------------------------------------------

    def plant(
        self,
        branch: str,
        *,
        name: str | None = None,
        base: str | None = None,
        create_branch: bool = False,
        switch: bool = False,
    ) -> PlantResult | GroveError:
        tree_name = name if name is not None else derive_tree_name(branch)
        invalid = validate_tree_name(tree_name)
        if invalid is not None:
            return invalid

        registry = self._store.read()
        if tree_name in registry.trees:
            return GroveError(
                kind=ErrorKind.TREE_ALREADY_EXISTS,
                message=f"Tree '{tree_name}' already exists",
                hint=f"Use 'grove tend {tree_name}' to switch to it",
            )

        path = self._layout.tree_path(tree_name)
        owner = registry.find_tree_by_path(path)
        if owner is not None:
            return GroveError(
                kind=ErrorKind.DUPLICATE_PATH,
                message=f"Path {path} is already registered as tree '{owner}'",
            )

        root = self._layout.root
        fetched = False
        try:
            local = self._git.branch_exists(root, branch)
            remote = not local and self._git.remote_branch_exists(root, self._remote, branch)
            should_create = create_branch or (not local and not remote)
            if remote and not should_create:
                logger.debug("Branch '%s' only exists on %s, fetching", branch, self._remote)
                self._git.fetch_branch(root, self._remote, branch)
                fetched = True

            self._layout.trees_dir.mkdir(parents=True, exist_ok=True)
            self._git.add_worktree(
                root,
                path,
                branch=branch,
                base=base if should_create else None,
                create_branch=should_create,
            )
        except GitCommandError as e:
            return git_failure(e)

        info = TreeInfo(branch=branch, path=path, created=self._now())
        try:
            persisted = self._persist(lambda r: r.with_tree(tree_name, info))
        except Exception:
            self._discard_worktree(path, branch if should_create else None)
            raise
        if isinstance(persisted, GroveError):
            self._discard_worktree(path, branch if should_create else None)
            return persisted

        logger.debug("Planted '%s' (%s) at %s", tree_name, branch, path)

        switched = False
        switch_error: GroveError | None = None
        if switch:
            tended = self._switch(persisted, tree_name)
            if isinstance(tended, GroveError):
                switch_error = tended
            else:
                switched = True

        return PlantResult(
            name=tree_name,
            tree=info,
            created_branch=should_create,
            fetched=fetched,
            switched=switched,
            switch_error=switch_error,
        )

    def _discard_worktree(self, path: Path, created_branch: str | None) -> None:
        """Undo a worktree add after the registry could not be written."""
        try:
            self._git.remove_worktree(self._layout.root, path, force=True)
        except GitCommandError as e:
            logger.warning("Could not remove worktree %s during rollback: %s", path, e)
            return
        if created_branch is None:
            return
        try:
            self._git.delete_branch(self._layout.root, created_branch, force=True)
        except GitCommandError as e:
            logger.warning("Could not delete branch '%s' during rollback: %s", created_branch, e)

    # ------------------------------------------------------------------
    # tend
    # ------------------------------------------------------------------

    def tend(self, name: str) -> TendResult | GroveError:
        invalid = validate_tree_name(name)
        if invalid is not None:
            return invalid

        registry = self._store.read()
        if name not in registry.trees:
            return tree_not_found(name, registry)
        return self._switch(registry, name)

    def _switch(self, registry: Registry, name: str) -> TendResult | GroveError:
        """Point the link at ``name`` first, then persist ``current``.

        The link is restored if the registry cannot be written, so the two
        never disagree after a failed switch.
        """
        info = registry.trees[name]
        link = inspect_active_link(self._layout, registry)
        if registry.current == name and link.valid and link.target == info.path.resolve():
            return TendResult(name=name, tree=info, already_current=True, previous=name)

        if not info.path.exists():
            return GroveError(
                kind=ErrorKind.TREE_PATH_MISSING,
                message=f"Tree '{name}' path does not exist: {info.path}",
                hint="Run 'grove doctor --fix' to repair the registry",
            )

        previous_target = read_link_target(self._layout)
        try:
            point_active_link(self._layout, info.path)
        except OSError as e:
            return GroveError(
                kind=ErrorKind.ACTIVE_LINK_FAILED,
                message=f"Could not point {self._layout.link_path} at {info.path}: {e}",
            )

        try:
            persisted = self._persist(lambda r: r.with_current(name))
        except Exception:
            self._restore_link(previous_target)
            raise
        if isinstance(persisted, GroveError):
            self._restore_link(previous_target)
            return persisted

        logger.debug("Switched current from %s to %s", registry.current, name)
        return TendResult(name=name, tree=info, already_current=False, previous=registry.current)

    def _restore_link(self, previous_target: Path | None) -> None:
        try:
            if previous_target is None:
                remove_active_link(self._layout)
            else:
                point_active_link(self._layout, previous_target)
        except OSError as e:
            logger.warning("Could not restore %s: %s", self._layout.link_path, e)

    # ------------------------------------------------------------------
    # uproot
    # ------------------------------------------------------------------

    def uproot(self, name: str, *, force: bool = False) -> UprootResult | GroveError:
        invalid = validate_tree_name(name)
        if invalid is not None:
            return invalid

        registry = self._store.read()
        if name not in registry.trees:
            return tree_not_found(name, registry)

        info = registry.trees[name]
        if name == MAIN_TREE or not self._layout.is_managed_path(info.path):
            return GroveError(
                kind=ErrorKind.CANNOT_REMOVE_MAIN,
                message=f"Cannot remove '{name}': it is the main repository checkout",
            )

        was_current = registry.current == name
        if was_current and len(registry.trees) == 1:
            return GroveError(
                kind=ErrorKind.LAST_TREE_REMAINING,
                message=f"Cannot remove '{name}': it is the only tree and it is current",
            )

        warnings: list[str] = []
        stopped_preview = False
        try:
            stopped_preview = self.previews(registry).stop(name)
        except OSError as e:
            logger.warning("Could not stop preview for '%s': %s", name, e)
            warnings.append(f"Could not stop preview for '{name}': {e}")

        try:
            self._git.remove_worktree(self._layout.root, info.path, force=force)
        except GitCommandError as e:
            if info.path.exists():
                hint = "Use --force to remove a tree with uncommitted changes"
            else:
                hint = "The tree directory is gone; run 'grove prune' instead"
            return git_failure(e, hint=hint)

        def remove(r: Registry) -> Registry:
            remaining = r.without_trees([name]).without_previews([name])
            if r.current == name:
                return remaining.with_current(choose_current(remaining.trees))
            return remaining

        persisted = self._persist(remove)
        if isinstance(persisted, GroveError):
            return persisted

        if was_current:
            try:
                sync_active_link(self._layout, persisted)
            except OSError as e:
                logger.warning("Could not update %s: %s", self._layout.link_path, e)
                warnings.append(f"Could not update the current link: {e}")

        logger.debug("Uprooted '%s', current is now %s", name, persisted.current)
        return UprootResult(
            name=name,
            tree=info,
            was_current=was_current,
            new_current=persisted.current,
            stopped_preview=stopped_preview,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # adopt
    # ------------------------------------------------------------------

    def adopt(
        self, path: Path, *, name: str | None = None, switch: bool = False
    ) -> AdoptResult | GroveError:
        resolved = path.resolve()
        # A path inside a linked worktree adopts that worktree
        top = self._git.get_repository_root(resolved)
        if top is not None and top.resolve() != self._layout.root.resolve():
            resolved = top.resolve()
        registry = self._store.read()

        try:
            worktrees = self._git.list_worktrees(self._layout.root)
        except GitCommandError as e:
            return git_failure(e)

        worktree = find_worktree_at_path(worktrees, resolved)
        if worktree is None:
            return GroveError(
                kind=ErrorKind.WORKTREE_NOT_FOUND,
                message=f"No git worktree found at {resolved}",
                hint="Create it with 'git worktree add' or use 'grove plant'",
            )

        if name is None:
            if worktree.branch is None:
                return GroveError(
                    kind=ErrorKind.NAME_REQUIRED,
                    message=f"Worktree at {resolved} has a detached HEAD",
                    hint="Pass a tree name explicitly",
                )
            name = derive_tree_name(worktree.branch)

        invalid = validate_tree_name(name)
        if invalid is not None:
            return invalid

        if name in registry.trees:
            return GroveError(
                kind=ErrorKind.TREE_ALREADY_EXISTS,
                message=f"Tree '{name}' already exists",
            )

        owner = registry.find_tree_by_path(resolved)
        if owner is not None:
            return GroveError(
                kind=ErrorKind.DUPLICATE_PATH,
                message=f"Worktree at {resolved} is already registered as tree '{owner}'",
            )

        staging_dir = self._layout.staging_dir.resolve()
        if not self._layout.is_managed_path(resolved) or resolved.is_relative_to(staging_dir):
            return GroveError(
                kind=ErrorKind.OUTSIDE_TREES_DIR,
                message=f"Worktree at {resolved} is not inside {self._layout.trees_dir}",
                hint=f"Move it with 'git worktree move {resolved} {self._layout.tree_path(name)}'",
            )

        info = TreeInfo(
            branch=worktree.branch or worktree.head,
            path=resolved,
            created=self._now(),
        )
        persisted = self._persist(lambda r: r.with_tree(name, info))
        if isinstance(persisted, GroveError):
            return persisted

        logger.debug("Adopted '%s' at %s", name, resolved)

        switched = False
        switch_error: GroveError | None = None
        if switch:
            tended = self._switch(persisted, name)
            if isinstance(tended, GroveError):
                switch_error = tended
            else:
                switched = True

        return AdoptResult(name=name, tree=info, switched=switched, switch_error=switch_error)

    # ------------------------------------------------------------------
    # prune
    # ------------------------------------------------------------------

    def _missing_trees(self, registry: Registry) -> list[str] | GroveError:
        """Non-main trees that git no longer reports or whose directory is gone."""
        try:
            worktrees = self._git.list_worktrees(self._layout.root)
        except GitCommandError as e:
            return git_failure(e)

        live = {wt.path.resolve() for wt in worktrees}
        return [
            name
            for name, info in registry.trees.items()
            if name != MAIN_TREE and (info.path.resolve() not in live or not info.path.exists())
        ]

    def prune(self, *, dry_run: bool = False) -> PruneResult | GroveError:
        registry = self._store.read()
        stale = self._missing_trees(registry)
        if isinstance(stale, GroveError):
            return stale

        previews = registry.previews()
        stale_previews = [name for name in stale if name in previews]

        if dry_run or not stale:
            return PruneResult(
                dry_run=dry_run,
                pruned_trees=stale,
                pruned_previews=stale_previews,
                current=registry.current,
                current_changed=False,
            )

        def drop_stale(r: Registry) -> Registry:
            remaining = r.without_trees(stale).without_previews(stale)
            if r.current is not None and r.current not in remaining.trees:
                return remaining.with_current(choose_current(remaining.trees))
            return remaining

        persisted = self._persist(drop_stale)
        if isinstance(persisted, GroveError):
            return persisted

        warnings: list[str] = []
        current_changed = persisted.current != registry.current
        if current_changed:
            try:
                sync_active_link(self._layout, persisted)
            except OSError as e:
                logger.warning("Could not update %s: %s", self._layout.link_path, e)
                warnings.append(f"Could not update the current link: {e}")

        try:
            self._git.prune_worktrees(self._layout.root)
        except GitCommandError as e:
            logger.warning("git worktree prune failed: %s", e)

        logger.debug("Pruned %s", ", ".join(stale))
        return PruneResult(
            dry_run=False,
            pruned_trees=stale,
            pruned_previews=stale_previews,
            current=persisted.current,
            current_changed=current_changed,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # doctor
    # ------------------------------------------------------------------

    def doctor(self, *, fix: bool = False) -> DoctorReport | GroveError:
        registry = self._store.read()
        missing = self._missing_trees(registry)
        if isinstance(missing, GroveError):
            return missing

        table = self.previews(registry)
        stale_previews = table.stale_names()
        link = inspect_active_link(self._layout, registry)
        config_current = registry.current

        issues: list[DoctorIssue] = []
        if missing:
            issues.append(
                DoctorIssue(
                    kind=IssueKind.MISSING_TREES,
                    message=f"Trees without a worktree: {', '.join(missing)}",
                    details={
                        "trees": [
                            {"name": name, "path": str(registry.trees[name].path)}
                            for name in missing
                        ]
                    },
                )
            )
        if stale_previews:
            entries = table.entries()
            issues.append(
                DoctorIssue(
                    kind=IssueKind.STALE_PREVIEWS,
                    message=f"Previews whose process is gone: {', '.join(stale_previews)}",
                    details={
                        "previews": [
                            {
                                "name": name,
                                "pid": entries[name].pid if name in entries else None,
                                "port": entries[name].port if name in entries else None,
                            }
                            for name in stale_previews
                        ]
                    },
                )
            )
        if (link.present and not link.valid) or (not link.present and config_current is not None):
            issues.append(
                DoctorIssue(
                    kind=IssueKind.INVALID_CURRENT_SYMLINK,
                    message=f"{self._layout.link_path} is missing or does not resolve",
                )
            )
        if (
            link.valid
            and config_current is not None
            and config_current in registry.trees
            and link.tree_name != config_current
        ):
            issues.append(
                DoctorIssue(
                    kind=IssueKind.CURRENT_MISMATCH,
                    message=(
                        f"Registry says current is '{config_current}' but the link points "
                        f"at {link.tree_name or link.target}"
                    ),
                    details={"configCurrent": config_current, "symlinkCurrent": link.tree_name},
                )
            )
        if config_current is not None and config_current not in registry.trees:
            issues.append(
                DoctorIssue(
                    kind=IssueKind.CURRENT_MISSING,
                    message=f"Current tree '{config_current}' is not registered",
                    details={"current": config_current},
                )
            )

        if not fix:
            return DoctorReport(
                issues=issues,
                fixed=False,
                pruned_trees=[],
                pruned_previews=[],
                current=config_current,
            )

        dropped = set(stale_previews) | set(missing)
        pruned_previews = [name for name in registry.previews() if name in dropped]
        symlink_current = link.tree_name if link.valid else None

        def repair(r: Registry) -> Registry:
            remaining = r.without_trees(missing).without_previews(pruned_previews)
            return remaining.with_current(
                choose_current(remaining.trees, r.current, symlink_current)
            )

        persisted = self._persist(repair)
        if isinstance(persisted, GroveError):
            return persisted

        warnings: list[str] = []
        try:
            sync_active_link(self._layout, persisted)
        except OSError as e:
            logger.warning("Could not update %s: %s", self._layout.link_path, e)
            warnings.append(f"Could not update the current link: {e}")

        if missing:
            try:
                self._git.prune_worktrees(self._layout.root)
            except GitCommandError as e:
                logger.warning("git worktree prune failed: %s", e)

        logger.debug("Doctor repaired grove, current is %s", persisted.current)
        return DoctorReport(
            issues=issues,
            fixed=True,
            pruned_trees=missing,
            pruned_previews=pruned_previews,
            current=persisted.current,
            warnings=warnings,
        )


def _ensure_gitignore_entries(gitignore: Path) -> bool:
    """Append grove's entries to .gitignore. Returns True if the file changed."""
    existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    present = {line.strip() for line in existing.splitlines()}
    missing = [entry for entry in GITIGNORE_ENTRIES if entry not in present]
    if not missing:
        return False

    prefix = "" if not existing or existing.endswith("\n") else "\n"
    block = prefix + "\n# grove\n" + "\n".join(missing) + "\n"
    if not existing:
        block = "# grove\n" + "\n".join(missing) + "\n"
    gitignore.write_text(existing + block, encoding="utf-8")
    return True
