import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import InitResponse
from grove.core.context import GroveContext
from grove.core.errors import ErrorKind, GroveError
from grove.core.repo_discovery import GroveLayout


@click.command("init")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def init_cmd(ctx: GroveContext) -> None:
    """Set up grove in the current repository.

    Registers the checkout as tree 'main', makes it current, and adds grove's
    files to .gitignore.
    """
    if isinstance(ctx.grove, GroveLayout):
        layout = ctx.grove
    elif ctx.grove.repo_root is not None:
        layout = GroveLayout(root=ctx.grove.repo_root)
    else:
        Ensure.fail(
            ctx,
            GroveError(kind=ErrorKind.NOT_INITIALIZED, message=ctx.grove.message),
        )

    result = Ensure.success(ctx, ctx.tree_registry(layout).initialize())

    if ctx.output.json:
        emit_model(
            InitResponse(
                root=str(result.root),
                main_branch=result.main_branch,
                already_initialized=result.already_initialized,
                gitignore_updated=result.gitignore_updated,
            )
        )
        return

    if result.already_initialized:
        ctx.feedback.info(f"Grove already initialized at {result.root}")
        return

    ctx.feedback.success(f"✓ Initialized grove at {result.root}")
    ctx.feedback.info(f"  Tree 'main' is on branch '{result.main_branch}'")
    if result.gitignore_updated:
        ctx.feedback.info("  Added .grove/ and current to .gitignore")
    ctx.feedback.info("")
    ctx.feedback.info("Next: grove plant <branch>")
