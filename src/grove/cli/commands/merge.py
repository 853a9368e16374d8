import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import (
    ConflictJson,
    MergeResponse,
    MergeSourceJson,
    MergeTargetJson,
    StagingJson,
)
from grove.cli.output import user_output
from grove.core.context import GroveContext
from grove.core.integration import IntegrationOutcome, Strategy, continue_command

MAX_CONFLICTS_SHOWN = 10


def _to_json(outcome: IntegrationOutcome) -> MergeResponse:
    source = outcome.source
    target = outcome.target
    staging = outcome.staging
    error = outcome.error
    return MergeResponse(
        ok=outcome.ok,
        strategy=outcome.strategy.value,
        applied=outcome.applied,
        source=(
            MergeSourceJson(name=source.name, branch=source.branch, path=str(source.path))
            if source is not None
            else None
        ),
        target=(
            MergeTargetJson(
                input=target.input, branch=target.branch, tree=target.tree, ref=target.ref
            )
            if target is not None
            else None
        ),
        staging=(
            StagingJson(
                kept=outcome.staging_kept,
                path=str(staging.path) if outcome.staging_kept else None,
                branch=staging.branch_name if outcome.staging_kept else None,
            )
            if staging is not None
            else None
        ),
        conflicts=[ConflictJson(status=c.status, path=c.path) for c in outcome.conflicts],
        result_commit=outcome.result_commit,
        warnings=outcome.warnings,
        error=error.kind.value if error is not None else None,
        message=error.message if error is not None else None,
        hint=error.hint if error is not None else None,
    )


def _report_conflicts(ctx: GroveContext, outcome: IntegrationOutcome) -> None:
    assert outcome.error is not None
    assert outcome.staging is not None
    user_output(click.style("Conflicts: ", fg="red") + outcome.error.message)
    for conflict in outcome.conflicts[:MAX_CONFLICTS_SHOWN]:
        user_output(f"  {click.style(conflict.status, fg='yellow')} {conflict.path}")
    hidden = len(outcome.conflicts) - MAX_CONFLICTS_SHOWN
    if hidden > 0:
        user_output(click.style(f"  ... and {hidden} more", fg="bright_black"))
    user_output("")
    user_output("Resolve them in the staging worktree:")
    user_output(f"  cd {outcome.staging.path}")
    user_output(f"  {continue_command(outcome.strategy)}")


@click.command("merge")
@click.argument("source")
@click.argument("target")
@click.option("-r", "--rebase", is_flag=True, help="Shorthand for --strategy rebase.")
@click.option(
    "-s",
    "--strategy",
    type=click.Choice([s.value for s in Strategy]),
    default=None,
    help="How to integrate TARGET (default: merge).",
)
@click.option("--apply", is_flag=True, help="Move SOURCE's branch and tree to the result.")
@click.option("--keep-temp", is_flag=True, help="Keep the staging worktree after success.")
@click.option(
    "--fetch/--no-fetch", default=True, help="Fetch TARGET from the remote first (default: on)."
)
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def merge_cmd(
    ctx: GroveContext,
    source: str,
    target: str,
    rebase: bool,
    strategy: str | None,
    apply: bool,
    keep_temp: bool,
    fetch: bool,
) -> None:
    """Integrate TARGET into the tree SOURCE in a staging worktree.

    TARGET is a tree name or a branch. SOURCE's tree is left untouched unless
    --apply is given and the integration finished without conflicts. On
    conflicts the staging worktree is kept so they can be resolved there.
    """
    layout = Ensure.grove(ctx)
    Ensure.invariant(
        ctx,
        not (rebase and strategy == Strategy.MERGE.value),
        "--rebase conflicts with --strategy merge",
    )
    chosen = Strategy.REBASE if rebase else Strategy(strategy or Strategy.MERGE.value)

    outcome = ctx.integration_engine(layout).merge_assist(
        source,
        target,
        strategy=chosen,
        apply=apply,
        keep_temp=keep_temp,
        fetch=fetch,
    )

    if ctx.output.json:
        emit_model(_to_json(outcome))
        if not outcome.ok:
            raise SystemExit(1)
        return

    for warning in outcome.warnings:
        ctx.feedback.warning(warning)

    if not outcome.ok:
        assert outcome.error is not None
        if outcome.conflicts:
            _report_conflicts(ctx, outcome)
            raise SystemExit(1)
        Ensure.fail(ctx, outcome.error)

    assert outcome.target is not None
    assert outcome.result_commit is not None
    verb = "Rebased onto" if chosen is Strategy.REBASE else "Merged"
    ctx.feedback.success(
        f"✓ {verb} '{outcome.target.ref}' for '{source}' ({outcome.result_commit[:8]})"
    )
    if outcome.applied:
        ctx.feedback.info(f"  Applied to tree '{source}'")
    elif outcome.staging is not None and outcome.staging_kept:
        ctx.feedback.info(f"  Result is on branch '{outcome.staging.branch_name}'")
    else:
        ctx.feedback.info("  Use --apply to move the tree to the result")
    if outcome.staging is not None and outcome.staging_kept:
        ctx.feedback.info(f"  Staging worktree kept at {outcome.staging.path}")
