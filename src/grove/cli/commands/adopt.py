from pathlib import Path

import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import AdoptResponse, tree_json
from grove.core.context import GroveContext


@click.command("adopt")
@click.argument("path", type=click.Path(path_type=Path))
@click.argument("name", required=False)
@click.option("-s", "--switch", is_flag=True, help="Make the adopted tree current.")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def adopt_cmd(ctx: GroveContext, path: Path, name: str | None, switch: bool) -> None:
    """Bring an existing git worktree at PATH under grove's management.

    NAME defaults to the worktree's branch with '/' replaced by '-'.
    """
    layout = Ensure.grove(ctx)
    target = path if path.is_absolute() else ctx.cwd / path
    result = Ensure.success(
        ctx, ctx.tree_registry(layout).adopt(target, name=name, switch=switch)
    )

    warnings: list[str] = []
    if result.switch_error is not None:
        warnings.append(f"Could not switch to '{result.name}': {result.switch_error.message}")

    if ctx.output.json:
        emit_model(
            AdoptResponse(
                tree=tree_json(result.name, result.tree),
                switched=result.switched,
                warnings=warnings,
            )
        )
        return

    ctx.feedback.success(f"✓ Adopted '{result.name}' ({result.tree.branch})")
    if result.switched:
        ctx.feedback.info(f"  Now tending '{result.name}'")
    for warning in warnings:
        ctx.feedback.warning(warning)
