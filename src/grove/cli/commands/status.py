from pathlib import Path

import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import StatusResponse
from grove.cli.output import machine_output
from grove.core.context import GroveContext
from grove.core.registry import Registry


def _tree_containing(registry: Registry, cwd: Path) -> str | None:
    """Name of the tree whose path is the deepest ancestor of ``cwd``."""
    here = cwd.resolve()
    best: tuple[int, str] | None = None
    for name, info in registry.trees.items():
        root = info.path.resolve()
        if here == root or here.is_relative_to(root):
            depth = len(root.parts)
            if best is None or depth > best[0]:
                best = (depth, name)
    return best[1] if best is not None else None


@click.command("status")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def status_cmd(ctx: GroveContext) -> None:
    """Show the current tree, the tree you are in, and running previews."""
    layout = Ensure.grove(ctx)
    trees = ctx.tree_registry(layout)
    registry = trees.read()
    running = sorted(trees.previews(registry).running())
    here = _tree_containing(registry, ctx.cwd)
    current_info = registry.trees.get(registry.current) if registry.current else None

    if ctx.output.quiet and not ctx.output.json:
        machine_output(registry.current or "")
        return

    if ctx.output.json:
        emit_model(
            StatusResponse(
                root=str(layout.root),
                current=registry.current,
                current_path=str(current_info.path) if current_info is not None else None,
                here=here,
                tree_count=len(registry.trees),
                running_previews=running,
            )
        )
        return

    ctx.feedback.info(click.style("Grove: ", bold=True) + str(layout.root))
    if current_info is not None:
        ctx.feedback.info(
            click.style("Current: ", bold=True)
            + f"{registry.current} ({current_info.branch}) {current_info.path}"
        )
    else:
        ctx.feedback.info(click.style("Current: ", bold=True) + "(none)")
    ctx.feedback.info(click.style("Here: ", bold=True) + (here or "(outside any tree)"))
    ctx.feedback.info(click.style("Trees: ", bold=True) + str(len(registry.trees)))
    if running:
        ctx.feedback.info(click.style("Previews running: ", bold=True) + ", ".join(running))
