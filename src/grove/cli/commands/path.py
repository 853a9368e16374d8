import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import PathResponse
from grove.cli.output import machine_output
from grove.core.context import GroveContext
from grove.core.naming import validate_tree_name
from grove.core.tree_registry import tree_not_found


@click.command("path")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def path_cmd(ctx: GroveContext, name: str) -> None:
    """Print the path of tree NAME.

    Example: cd "$(grove path feature-x)"
    """
    layout = Ensure.grove(ctx)
    invalid = validate_tree_name(name)
    if invalid is not None:
        Ensure.fail(ctx, invalid)

    registry = ctx.tree_registry(layout).read()
    info = registry.trees.get(name)
    if info is None:
        Ensure.fail(ctx, tree_not_found(name, registry))

    if ctx.output.json:
        emit_model(PathResponse(name=name, path=str(info.path)))
        return
    machine_output(str(info.path))
