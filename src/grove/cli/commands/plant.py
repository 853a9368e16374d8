import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import PlantResponse, tree_json
from grove.cli.output import machine_output
from grove.core.context import GroveContext
from grove.core.post_plant import copy_editor_configs, run_post_plant_commands


@click.command("plant")
@click.argument("branch")
@click.argument("name", required=False)
@click.option("-n", "--new", "create_branch", is_flag=True, help="Create a new branch.")
@click.option("-b", "--base", help="Start point for the new branch (with --new).")
@click.option("-s", "--switch", is_flag=True, help="Make the new tree current.")
@click.option("--no-install", is_flag=True, help="Skip the configured post-plant commands.")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def plant_cmd(
    ctx: GroveContext,
    branch: str,
    name: str | None,
    create_branch: bool,
    base: str | None,
    switch: bool,
    no_install: bool,
) -> None:
    """Create a new tree for BRANCH.

    NAME defaults to the branch with '/' replaced by '-'. The branch is created
    when --new is given or when it exists neither locally nor on the remote.
    """
    layout = Ensure.grove(ctx)
    result = Ensure.success(
        ctx,
        ctx.tree_registry(layout).plant(
            branch,
            name=name,
            base=base,
            create_branch=create_branch,
            switch=switch,
        ),
    )

    warnings: list[str] = []
    if result.switch_error is not None:
        warnings.append(f"Could not switch to '{result.name}': {result.switch_error.message}")

    copied: list[str] = []
    if ctx.settings.copy_editor_configs:
        try:
            copied = copy_editor_configs(layout.root, result.tree.path)
        except OSError as e:
            warnings.append(f"Could not copy editor configs: {e}")

    failed: list[str] = []
    if not no_install and ctx.settings.post_plant_commands:
        ctx.feedback.info("Running post-plant commands...")
        failed = run_post_plant_commands(
            ctx.shell,
            ctx.settings.post_plant_commands,
            result.tree.path,
            ctx.settings.post_plant_shell,
        )
        warnings.extend(f"Post-plant command failed: {cmd}" for cmd in failed)

    if ctx.output.json:
        emit_model(
            PlantResponse(
                tree=tree_json(result.name, result.tree),
                created=result.created_branch,
                fetched=result.fetched,
                copied_configs=copied,
                failed_commands=failed,
                switched=result.switched,
                warnings=warnings,
            )
        )
        return

    if ctx.output.quiet:
        machine_output(str(result.tree.path))
        return

    ctx.feedback.success(f"✓ Planted '{result.name}' at {result.tree.path}")
    if result.created_branch:
        ctx.feedback.info(f"  Created branch '{branch}'")
    elif result.fetched:
        ctx.feedback.info(f"  Fetched '{branch}' from {ctx.settings.remote}")
    if copied:
        ctx.feedback.info(f"  Copied {', '.join(copied)}")
    for warning in warnings:
        ctx.feedback.warning(warning)

    if result.switched:
        ctx.feedback.info(f"  Now tending '{result.name}'")
    else:
        ctx.feedback.info(f"  Switch to it with: grove tend {result.name}")
