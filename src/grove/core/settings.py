import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomlkit

DEFAULT_REMOTE = "origin"


@dataclass(frozen=True)
class GroveSettings:
    """In-memory representation of `.grove/settings.toml`."""

    remote: str = DEFAULT_REMOTE
    copy_editor_configs: bool = True
    post_plant_commands: list[str] = field(default_factory=list)
    post_plant_shell: str | None = None


def load_settings(settings_path: Path) -> GroveSettings:
    """Load settings.toml if present; otherwise return defaults.

    Example settings:
      remote = "upstream"
      copy_editor_configs = false

      [post_plant]
      shell = "bash"
      commands = [
        "npm install",
      ]

    Raises:
        ValueError: If a value has the wrong type
    """
    if not settings_path.exists():
        return GroveSettings()

    data = tomllib.loads(settings_path.read_text(encoding="utf-8"))

    remote = data.get("remote", DEFAULT_REMOTE)
    if not isinstance(remote, str) or not remote:
        raise ValueError(f"'remote' must be a non-empty string in {settings_path}")

    copy_editor_configs = data.get("copy_editor_configs", True)
    if not isinstance(copy_editor_configs, bool):
        raise ValueError(f"'copy_editor_configs' must be true or false in {settings_path}")

    post = data.get("post_plant", {})
    commands = [str(x) for x in post.get("commands", [])]
    shell = post.get("shell")
    if shell is not None:
        shell = str(shell)

    return GroveSettings(
        remote=remote,
        copy_editor_configs=copy_editor_configs,
        post_plant_commands=commands,
        post_plant_shell=shell,
    )


def save_settings(settings_path: Path, settings: GroveSettings) -> None:
    """Save GroveSettings to settings.toml, preserving unrelated content.

    Uses tomlkit so comments and formatting in an existing file survive.
    """
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    if settings_path.exists():
        doc = tomlkit.parse(settings_path.read_text(encoding="utf-8"))
    else:
        doc = tomlkit.document()

    doc["remote"] = settings.remote
    doc["copy_editor_configs"] = settings.copy_editor_configs

    if settings.post_plant_commands or settings.post_plant_shell:
        post_plant = tomlkit.table()
        if settings.post_plant_shell:
            post_plant["shell"] = settings.post_plant_shell
        if settings.post_plant_commands:
            post_plant["commands"] = settings.post_plant_commands
        doc["post_plant"] = post_plant
    elif "post_plant" in doc:
        del doc["post_plant"]

    settings_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
