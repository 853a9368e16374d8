"""Grove root discovery.

Finds the directory holding ``.grove/config.json`` so commands work from the
main checkout, from inside any managed tree, and from their subdirectories.
"""

from dataclasses import dataclass
from pathlib import Path

from grove.core.git.abc import Git

GROVE_DIR_NAME = ".grove"
CONFIG_FILE_NAME = "config.json"
SETTINGS_FILE_NAME = "settings.toml"
ACTIVE_LINK_NAME = "current"
STAGING_DIR_NAME = ".merge-assist"


@dataclass(frozen=True)
class GroveLayout:
    """Filesystem locations of an initialized grove, all derived from ``root``."""

    root: Path

    @property
    def grove_dir(self) -> Path:
        return self.root / GROVE_DIR_NAME

    @property
    def config_path(self) -> Path:
        return self.grove_dir / CONFIG_FILE_NAME

    @property
    def settings_path(self) -> Path:
        return self.grove_dir / SETTINGS_FILE_NAME

    @property
    def trees_dir(self) -> Path:
        return self.grove_dir / "trees"

    @property
    def shared_dir(self) -> Path:
        return self.grove_dir / "shared"

    @property
    def staging_dir(self) -> Path:
        return self.trees_dir / STAGING_DIR_NAME

    @property
    def link_path(self) -> Path:
        return self.root / ACTIVE_LINK_NAME

    def tree_path(self, name: str) -> Path:
        return self.trees_dir / name

    def is_managed_path(self, path: Path) -> bool:
        """True when ``path`` lies strictly inside the managed trees directory."""
        return path.resolve().is_relative_to(self.trees_dir.resolve()) and (
            path.resolve() != self.trees_dir.resolve()
        )


@dataclass(frozen=True)
class NoGroveSentinel:
    """Sentinel value indicating no initialized grove was found.

    ``repo_root`` is set when ``cwd`` is inside a git repository that simply has
    not been initialized yet, which is what ``grove init`` needs.
    """

    message: str = "Not inside a grove. Run 'grove init' in your repository first."
    repo_root: Path | None = None


def discover_grove_or_sentinel(cwd: Path, git: Git) -> GroveLayout | NoGroveSentinel:
    """Walk up from ``cwd`` looking for ``.grove/config.json``.

    Falls back to the parent of git's common directory, which is the main
    checkout even when ``cwd`` is inside a linked worktree.
    """
    if not cwd.exists():
        return NoGroveSentinel(message=f"Start path '{cwd}' does not exist")

    cur = cwd.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / GROVE_DIR_NAME / CONFIG_FILE_NAME).is_file():
            return GroveLayout(root=parent)

    git_common_dir = git.get_git_common_dir(cur)
    if git_common_dir is None:
        return NoGroveSentinel(message="Not inside a git repository")

    repo_root = git_common_dir.parent.resolve()
    if (repo_root / GROVE_DIR_NAME / CONFIG_FILE_NAME).is_file():
        return GroveLayout(root=repo_root)

    return NoGroveSentinel(repo_root=repo_root)
