import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import PruneResponse
from grove.core.context import GroveContext


@click.command("prune")
@click.option("--dry-run", is_flag=True, help="Show what would be pruned without pruning.")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def prune_cmd(ctx: GroveContext, dry_run: bool) -> None:
    """Drop trees whose worktree was deleted outside grove."""
    layout = Ensure.grove(ctx)
    result = Ensure.success(ctx, ctx.tree_registry(layout).prune(dry_run=dry_run))

    if ctx.output.json:
        emit_model(
            PruneResponse(
                dry_run=result.dry_run,
                pruned_trees=result.pruned_trees,
                pruned_previews=result.pruned_previews,
                current=result.current,
            )
        )
        return

    if not result.pruned_trees:
        ctx.feedback.info("Nothing to prune")
        return

    verb = "Would prune" if dry_run else "Pruned"
    ctx.feedback.success(f"{verb} {len(result.pruned_trees)} tree(s):")
    for name in result.pruned_trees:
        ctx.feedback.info(f"  - {name}")
    if result.pruned_previews:
        ctx.feedback.info(f"  Preview entries: {', '.join(result.pruned_previews)}")
    if result.current_changed:
        ctx.feedback.info(f"  Now tending '{result.current}'")
    for warning in result.warnings:
        ctx.feedback.warning(warning)
