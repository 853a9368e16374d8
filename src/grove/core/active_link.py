"""The ``current`` symlink at the grove root.

The link target is always relative to the grove root: ``.`` for the main
checkout, ``.grove/trees/<name>`` for managed trees. Repointing writes a new
link next to the old one and renames it over, so the link is never absent
while it is being switched.
"""

import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path

from grove.core.registry import Registry
from grove.core.repo_discovery import GroveLayout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkState:
    """What the ``current`` link looks like on disk.

    Attributes:
        present: A symlink exists at the link path
        valid: The link exists and its target exists
        target: Absolute resolved target, None when no link is present
        tree_name: Registered tree whose path equals ``target``, if any
    """

    present: bool
    valid: bool
    target: Path | None
    tree_name: str | None


def link_target_for(layout: GroveLayout, tree_path: Path) -> str:
    """Relative link text for ``tree_path`` (``.`` for the grove root)."""
    return os.path.relpath(tree_path.resolve(), layout.root.resolve())


def point_active_link(layout: GroveLayout, tree_path: Path) -> None:
    """Atomically point the ``current`` link at ``tree_path``.

    Raises:
        OSError: If the link cannot be created or replaced (for example a real
            directory named ``current`` is in the way)
    """
    target = link_target_for(layout, tree_path)
    link_path = layout.link_path
    temp_link = link_path.with_name(f".{link_path.name}.{secrets.token_hex(4)}")
    os.symlink(target, temp_link)
    try:
        os.replace(temp_link, link_path)
    except OSError:
        temp_link.unlink(missing_ok=True)
        raise
    logger.debug("Pointed %s -> %s", link_path, target)


def remove_active_link(layout: GroveLayout) -> None:
    """Remove the ``current`` link if it is a symlink. Real files are left alone."""
    if layout.link_path.is_symlink():
        layout.link_path.unlink()
        logger.debug("Removed %s", layout.link_path)


def read_link_target(layout: GroveLayout) -> Path | None:
    """Absolute target of the ``current`` link, or None when there is no symlink."""
    link_path = layout.link_path
    if not link_path.is_symlink():
        return None
    raw = Path(os.readlink(link_path))
    if not raw.is_absolute():
        raw = layout.root / raw
    return raw.resolve()


def inspect_active_link(layout: GroveLayout, registry: Registry) -> LinkState:
    target = read_link_target(layout)
    if target is None:
        return LinkState(present=False, valid=False, target=None, tree_name=None)
    return LinkState(
        present=True,
        valid=target.exists(),
        target=target,
        tree_name=registry.find_tree_by_path(target),
    )


def sync_active_link(layout: GroveLayout, registry: Registry) -> None:
    """Make the ``current`` link agree with ``registry.current``.

    Points it at the current tree, or removes it when there is none.
    """
    if registry.current is None or registry.current not in registry.trees:
        remove_active_link(layout)
        return
    point_active_link(layout, registry.trees[registry.current].path)
