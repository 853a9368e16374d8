"""Setup steps that run in a freshly planted tree.

These never affect the registry. A failing step is reported back to the
caller as a warning; the tree stays planted.
"""

import logging
import shlex
import shutil
from collections.abc import Iterable
from pathlib import Path

from grove.core.shell import Shell

logger = logging.getLogger(__name__)

EDITOR_CONFIG_DIRS = (".claude", ".cursor", ".vscode", ".zed", ".idea")
EDITOR_CONFIG_FILES = (".cursorrules", ".clauderules", "CLAUDE.md", "cursor.json")


def copy_editor_configs(source_root: Path, tree_path: Path) -> list[str]:
    """Copy editor and AI assistant configuration into a new tree.

    Entries that already exist in the tree (for example because they are
    tracked by git) are left untouched.

    Returns:
        Names of the entries that were copied, in a stable order
    """
    copied: list[str] = []

    for name in EDITOR_CONFIG_DIRS:
        src = source_root / name
        dest = tree_path / name
        if not src.is_dir() or dest.exists():
            continue
        shutil.copytree(src, dest, symlinks=True)
        copied.append(name)

    for name in EDITOR_CONFIG_FILES:
        src = source_root / name
        dest = tree_path / name
        if not src.is_file() or dest.exists():
            continue
        shutil.copy2(src, dest)
        copied.append(name)

    if copied:
        logger.debug("Copied editor configs into %s: %s", tree_path, ", ".join(copied))
    return copied


def run_post_plant_commands(
    shell: Shell,
    commands: Iterable[str],
    tree_path: Path,
    shell_name: str | None,
) -> list[str]:
    """Run configured setup commands in the tree directory, serially.

    Args:
        shell: Shell used to execute commands
        commands: Commands to execute
        tree_path: Working directory for command execution
        shell_name: Shell to wrap each command with (e.g. "bash"), or None to
            tokenize with shlex

    Returns:
        Commands that exited non-zero. Later commands still run.
    """
    failed: list[str] = []
    for cmd in commands:
        cmd_list = [shell_name, "-lc", cmd] if shell_name else shlex.split(cmd)
        if not cmd_list:
            continue
        exit_code = shell.run_command(cmd_list, tree_path)
        if exit_code != 0:
            logger.warning("Post-plant command failed (exit %d): %s", exit_code, cmd)
            failed.append(cmd)
    return failed
