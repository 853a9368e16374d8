import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import TendResponse, tree_json
from grove.core.context import GroveContext


@click.command("tend")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def tend_cmd(ctx: GroveContext, name: str) -> None:
    """Make NAME the current tree."""
    layout = Ensure.grove(ctx)
    result = Ensure.success(ctx, ctx.tree_registry(layout).tend(name))

    if ctx.output.json:
        emit_model(
            TendResponse(
                tree=tree_json(result.name, result.tree),
                already_current=result.already_current,
                previous=result.previous,
            )
        )
        return

    if result.already_current:
        ctx.feedback.info(f"Already tending '{name}'")
        return

    ctx.feedback.success(f"✓ Now tending '{name}' ({result.tree.branch})")
    ctx.feedback.info(f"  {layout.link_path} -> {result.tree.path}")
