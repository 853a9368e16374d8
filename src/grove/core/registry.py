"""In-memory model of the grove registry (``.grove/config.json``).

The registry is immutable: every change produces a new Registry via the
``with_*``/``without_*`` helpers, which is what ConfigStore.update() expects
from its transform function.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from grove.core.errors import RegistryCorruptError

SCHEMA_VERSION = 1
MAIN_TREE = "main"
PREVIEWS_KEY = "previews"

_CORE_KEYS = ("version", "repo", "trees", "current")


@dataclass(frozen=True)
class TreeInfo:
    """A managed working copy.

    Attributes:
        branch: Branch checked out in the tree (HEAD commit for detached adoptions)
        path: Absolute path of the worktree
        created: ISO-8601 timestamp kept verbatim from the file
    """

    branch: str
    path: Path
    created: str

    def to_dict(self) -> dict[str, str]:
        return {"branch": self.branch, "path": str(self.path), "created": self.created}


@dataclass(frozen=True)
class Registry:
    """Persisted grove state.

    ``extras`` holds every top-level key grove's core does not own (package
    manager, framework, preview table, ...). It is written back unchanged.
    """

    repo: Path
    trees: Mapping[str, TreeInfo]
    current: str | None
    version: int = SCHEMA_VERSION
    extras: Mapping[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: Any) -> "Registry":
        """Build a Registry from decoded JSON.

        Raises:
            RegistryCorruptError: If the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise RegistryCorruptError("registry must be a JSON object")

        version = data.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            raise RegistryCorruptError("registry 'version' must be an integer")

        repo = data.get("repo")
        if not isinstance(repo, str):
            raise RegistryCorruptError("registry 'repo' must be a string")

        raw_trees = data.get("trees", {})
        if not isinstance(raw_trees, dict):
            raise RegistryCorruptError("registry 'trees' must be an object")

        trees: dict[str, TreeInfo] = {}
        for name, raw in raw_trees.items():
            if not isinstance(raw, dict):
                raise RegistryCorruptError(f"tree '{name}' must be an object")
            branch = raw.get("branch")
            path = raw.get("path")
            created = raw.get("created", "")
            if not isinstance(branch, str) or not isinstance(path, str):
                raise RegistryCorruptError(f"tree '{name}' needs string 'branch' and 'path'")
            if not isinstance(created, str):
                raise RegistryCorruptError(f"tree '{name}' has a non-string 'created'")
            trees[name] = TreeInfo(branch=branch, path=Path(path), created=created)

        current = data.get("current")
        if current is not None and not isinstance(current, str):
            raise RegistryCorruptError("registry 'current' must be a string or null")

        extras = {key: value for key, value in data.items() if key not in _CORE_KEYS}
        return Registry(
            repo=Path(repo),
            trees=trees,
            current=current,
            version=version,
            extras=extras,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "repo": str(self.repo),
            "trees": {name: info.to_dict() for name, info in self.trees.items()},
            "current": self.current,
        }
        data.update(self.extras)
        return data

    def tree_names(self) -> list[str]:
        return list(self.trees)

    def find_tree_by_path(self, path: Path) -> str | None:
        """Return the name of the tree whose resolved path equals ``path``."""
        target = path.resolve()
        for name, info in self.trees.items():
            if info.path.resolve() == target:
                return name
        return None

    def with_tree(self, name: str, info: TreeInfo) -> "Registry":
        trees = dict(self.trees)
        trees[name] = info
        return replace(self, trees=trees)

    def without_trees(self, names: Iterable[str]) -> "Registry":
        dropped = set(names)
        trees = {name: info for name, info in self.trees.items() if name not in dropped}
        return replace(self, trees=trees)

    def with_current(self, name: str | None) -> "Registry":
        return replace(self, current=name)

    def previews(self) -> dict[str, Any]:
        """The raw preview table, or an empty dict if absent or malformed."""
        raw = self.extras.get(PREVIEWS_KEY)
        if isinstance(raw, dict):
            return raw
        return {}

    def without_previews(self, names: Iterable[str]) -> "Registry":
        """Drop preview entries for ``names``; other extras are untouched."""
        dropped = set(names)
        previews = self.previews()
        if not any(name in previews for name in dropped):
            return self
        extras = dict(self.extras)
        extras[PREVIEWS_KEY] = {k: v for k, v in previews.items() if k not in dropped}
        return replace(self, extras=extras)


def new_registry(repo: Path, main_branch: str, created: str) -> Registry:
    """Registry for a freshly initialized repository: only ``main``, which is current."""
    main = TreeInfo(branch=main_branch, path=repo, created=created)
    return Registry(
        repo=repo,
        trees={MAIN_TREE: main},
        current=MAIN_TREE,
        extras={"packageManager": "npm", "framework": "generic", PREVIEWS_KEY: {}},
    )


def choose_current(trees: Mapping[str, TreeInfo], *preferred: str | None) -> str | None:
    """Pick the tree that should be current among ``trees``.

    Every operation that has to re-target ``current`` uses this rule: the first
    of ``preferred`` that is still a tree, else ``main``, else the first tree in
    registry order. Returns None only when ``trees`` is empty.
    """
    for candidate in preferred:
        if candidate is not None and candidate in trees:
            return candidate
    if MAIN_TREE in trees:
        return MAIN_TREE
    for name in trees:
        return name
    return None
