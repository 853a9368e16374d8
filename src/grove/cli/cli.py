import logging

import click

from grove.cli.commands.adopt import adopt_cmd
from grove.cli.commands.config import config_group
from grove.cli.commands.doctor import doctor_cmd
from grove.cli.commands.init import init_cmd
from grove.cli.commands.list_cmd import list_cmd
from grove.cli.commands.merge import merge_cmd
from grove.cli.commands.path import path_cmd
from grove.cli.commands.plant import plant_cmd
from grove.cli.commands.prune import prune_cmd
from grove.cli.commands.status import status_cmd
from grove.cli.commands.tend import tend_cmd
from grove.cli.commands.uproot import uproot_cmd
from grove.core.context import OutputMode, create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="grove")
@click.option("--json", "json_mode", is_flag=True, help="Print one JSON object on stdout.")
@click.option("-q", "--quiet", is_flag=True, help="Only print errors and essential output.")
@click.option("--debug", is_flag=True, help="Log every git call and state change to stderr.")
@click.pass_context
def cli(ctx: click.Context, json_mode: bool, quiet: bool, debug: bool) -> None:
    """Manage parallel git worktrees ("trees") for one repository."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s"
        )

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(output=OutputMode(json=json_mode, quiet=quiet))
    elif json_mode or quiet:
        current = ctx.obj.output
        ctx.obj = ctx.obj.with_output(
            OutputMode(json=json_mode or current.json, quiet=quiet or current.quiet)
        )


cli.add_command(adopt_cmd)
cli.add_command(config_group)
cli.add_command(doctor_cmd)
cli.add_command(init_cmd)
cli.add_command(list_cmd)
cli.add_command(list_cmd, name="ls")
cli.add_command(merge_cmd)
cli.add_command(path_cmd)
cli.add_command(plant_cmd)
cli.add_command(prune_cmd)
cli.add_command(status_cmd)
cli.add_command(tend_cmd)
cli.add_command(uproot_cmd)


def main() -> None:
    """CLI entry point used by the `grove` console script."""
    cli()
