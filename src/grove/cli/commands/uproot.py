import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import UprootResponse, tree_json
from grove.core.context import GroveContext


@click.command("uproot")
@click.argument("name")
@click.option(
    "-f", "--force", is_flag=True, help="Remove the tree even if it has uncommitted changes."
)
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def uproot_cmd(ctx: GroveContext, name: str, force: bool) -> None:
    """Remove the tree NAME and its worktree.

    The branch is kept. The main checkout can never be removed.
    """
    layout = Ensure.grove(ctx)
    result = Ensure.success(ctx, ctx.tree_registry(layout).uproot(name, force=force))

    if ctx.output.json:
        emit_model(
            UprootResponse(
                removed=tree_json(result.name, result.tree),
                was_current=result.was_current,
                current=result.new_current,
                stopped_preview=result.stopped_preview,
                warnings=result.warnings,
            )
        )
        return

    ctx.feedback.success(f"✓ Uprooted '{name}'")
    if result.stopped_preview:
        ctx.feedback.info("  Stopped its preview server")
    if result.was_current:
        if result.new_current is not None:
            ctx.feedback.info(f"  Now tending '{result.new_current}'")
        else:
            ctx.feedback.info("  No current tree")
    for warning in result.warnings:
        ctx.feedback.warning(warning)
