import click
from rich.table import Table

from grove.cli.ensure import Ensure
from grove.cli.error_boundary import cli_error_boundary
from grove.cli.json_output import emit_model, json_error_boundary
from grove.cli.json_schemas import ListEntryJson, ListResponse, PreviewJson
from grove.cli.output import machine_output, render
from grove.core.context import GroveContext


@click.command("list")
@click.pass_obj
@cli_error_boundary
@json_error_boundary
def list_cmd(ctx: GroveContext) -> None:
    """List trees, marking the current one."""
    layout = Ensure.grove(ctx)
    trees = ctx.tree_registry(layout)
    registry = trees.read()
    previews = trees.previews(registry)

    if ctx.output.json:
        entries: list[ListEntryJson] = []
        for name, info in registry.trees.items():
            preview = previews.get(name)
            entries.append(
                ListEntryJson(
                    name=name,
                    branch=info.branch,
                    path=str(info.path),
                    created=info.created,
                    current=name == registry.current,
                    exists=info.path.exists(),
                    preview=(
                        PreviewJson(
                            port=preview.port,
                            url=preview.url,
                            pid=preview.pid,
                            running=previews.is_running(name),
                        )
                        if preview is not None
                        else None
                    ),
                )
            )
        emit_model(ListResponse(current=registry.current, trees=entries))
        return

    if ctx.output.quiet:
        for name in registry.trees:
            machine_output(name)
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("", no_wrap=True)
    table.add_column("tree", style="cyan", no_wrap=True)
    table.add_column("branch", style="yellow", no_wrap=True)
    table.add_column("preview", no_wrap=True)
    table.add_column("path", style="dim")

    for name, info in registry.trees.items():
        marker = "[green]*[/green]" if name == registry.current else ""
        preview = previews.get(name)
        if preview is None:
            preview_cell = "-"
        elif previews.is_running(name):
            port = f":{preview.port}" if preview.port else "up"
            preview_cell = f"[green]{port}[/green]"
        else:
            preview_cell = "[red]stale[/red]"
        path_cell = str(info.path) if info.path.exists() else f"[red]{info.path} (missing)[/red]"
        table.add_row(marker, name, info.branch, preview_cell, path_cell)

    render(table)
