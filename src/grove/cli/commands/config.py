from dataclasses import replace

import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_json, emit_model, json_error_boundary
from grove.cli.json_schemas import ConfigListResponse
from grove.cli.output import machine_output
from grove.core.context import GroveContext
from grove.core.settings import GroveSettings, load_settings, save_settings

CONFIG_KEYS = ("remote", "copy_editor_configs", "post_plant.shell", "post_plant.commands")


def _parse_boolean_value(ctx: GroveContext, value: str, key: str) -> bool:
    """Parse "true" or "false" (case-insensitive), failing on anything else."""
    Ensure.invariant(
        ctx, value.lower() in ("true", "false"), f"Invalid boolean value for {key}: {value}"
    )
    return value.lower() == "true"


def _ensure_known_key(ctx: GroveContext, key: str) -> None:
    Ensure.invariant(
        ctx, key in CONFIG_KEYS, f"Unknown key: {key} (expected one of {', '.join(CONFIG_KEYS)})"
    )


def _value_of(settings: GroveSettings, key: str) -> str | bool | list[str] | None:
    match key:
        case "remote":
            return settings.remote
        case "copy_editor_configs":
            return settings.copy_editor_configs
        case "post_plant.shell":
            return settings.post_plant_shell
        case _:
            return list(settings.post_plant_commands)


def _with_value(
    ctx: GroveContext, settings: GroveSettings, key: str, values: tuple[str, ...]
) -> GroveSettings:
    """Return ``settings`` with ``key`` set from the command-line ``values``."""
    if key == "post_plant.commands":
        return replace(settings, post_plant_commands=list(values))

    Ensure.invariant(ctx, len(values) == 1, f"{key} takes exactly one value")
    value = values[0]
    match key:
        case "remote":
            Ensure.invariant(ctx, bool(value.strip()), "remote must not be empty")
            return replace(settings, remote=value)
        case "copy_editor_configs":
            return replace(settings, copy_editor_configs=_parse_boolean_value(ctx, value, key))
        case _:
            return replace(settings, post_plant_shell=value or None)


@click.group("config")
def config_group() -> None:
    """Manage grove settings (.grove/settings.toml)."""


@config_group.command("list")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def config_list(ctx: GroveContext) -> None:
    """Print all settings and their values."""
    layout = Ensure.grove(ctx)
    settings = ctx.settings
    exists = layout.settings_path.exists()

    if ctx.output.json:
        emit_model(
            ConfigListResponse(
                settings_path=str(layout.settings_path),
                exists=exists,
                remote=settings.remote,
                copy_editor_configs=settings.copy_editor_configs,
                post_plant_shell=settings.post_plant_shell,
                post_plant_commands=list(settings.post_plant_commands),
            )
        )
        return

    machine_output(click.style("Settings:", bold=True) + f" {layout.settings_path}")
    if not exists:
        machine_output("  (no settings file, showing defaults)")
    machine_output(f"  remote={settings.remote}")
    machine_output(f"  copy_editor_configs={str(settings.copy_editor_configs).lower()}")
    if settings.post_plant_shell:
        machine_output(f"  post_plant.shell={settings.post_plant_shell}")
    if settings.post_plant_commands:
        machine_output("  post_plant.commands=")
        for cmd in settings.post_plant_commands:
            machine_output(f"    - {cmd}")


@config_group.command("get")
@click.argument("key")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def config_get(ctx: GroveContext, key: str) -> None:
    """Print the value of KEY."""
    Ensure.grove(ctx)
    _ensure_known_key(ctx, key)
    value = _value_of(ctx.settings, key)

    if ctx.output.json:
        emit_json({"ok": True, "key": key, "value": value})
        return

    if isinstance(value, list):
        for item in value:
            machine_output(item)
    elif isinstance(value, bool):
        machine_output(str(value).lower())
    elif value is not None:
        machine_output(value)
    else:
        Ensure.invariant(ctx, False, f"Key not set: {key}")


@config_group.command("set")
@click.argument("key")
@click.argument("values", nargs=-1)
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def config_set(ctx: GroveContext, key: str, values: tuple[str, ...]) -> None:
    """Set KEY to VALUE.

    post_plant.commands takes any number of values and replaces the list.
    """
    layout = Ensure.grove(ctx)
    _ensure_known_key(ctx, key)

    # Re-read so edits made since startup are not lost
    current = load_settings(layout.settings_path)
    updated = _with_value(ctx, current, key, values)
    save_settings(layout.settings_path, updated)

    if ctx.output.json:
        emit_json({"ok": True, "key": key, "value": _value_of(updated, key)})
        return
    ctx.feedback.success(f"Set {key}")
