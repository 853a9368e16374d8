import click

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import DoctorIssueJson, DoctorResponse
from grove.core.context import GroveContext


@click.command("doctor")
@click.option("--fix", is_flag=True, help="Repair the problems that were found.")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def doctor_cmd(ctx: GroveContext, fix: bool) -> None:
    """Check the registry against git and the current link.

    Exits 1 when problems are found and --fix was not given.
    """
    layout = Ensure.grove(ctx)
    report = Ensure.success(ctx, ctx.tree_registry(layout).doctor(fix=fix))
    ok = report.healthy or report.fixed

    if ctx.output.json:
        emit_model(
            DoctorResponse(
                ok=ok,
                fixed=report.fixed,
                issues=[
                    DoctorIssueJson(
                        type=issue.kind.value, message=issue.message, details=issue.details
                    )
                    for issue in report.issues
                ],
                pruned_trees=report.pruned_trees,
                pruned_previews=report.pruned_previews,
                current=report.current,
                warnings=report.warnings,
            )
        )
        if not ok:
            raise SystemExit(1)
        return

    if report.healthy:
        ctx.feedback.success("✓ Grove is healthy")
        return

    ctx.feedback.warning(f"Found {len(report.issues)} issue(s):")
    for issue in report.issues:
        ctx.feedback.info(f"  - {issue.message}")

    if not report.fixed:
        ctx.feedback.info("")
        ctx.feedback.info("Run 'grove doctor --fix' to repair")
        raise SystemExit(1)

    ctx.feedback.success("✓ Repaired")
    if report.pruned_trees:
        ctx.feedback.info(f"  Removed trees: {', '.join(report.pruned_trees)}")
    if report.pruned_previews:
        ctx.feedback.info(f"  Removed previews: {', '.join(report.pruned_previews)}")
    ctx.feedback.info(f"  Current tree: {report.current or '(none)'}")
    for warning in report.warnings:
        ctx.feedback.warning(warning)
