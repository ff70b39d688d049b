"""``pit list FILE``, ``pit caches FILE`` and ``pit clean [FILE]``."""

from __future__ import annotations

from pathlib import Path

import typer

from pit.cli.context import console, get_settings, make_orchestrator, reporting_errors
from pit.cli.render import OutcomeRenderer


def list_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
) -> None:
    """List package names in file order, one per line."""
    with reporting_errors():
        names = make_orchestrator(ctx, OutcomeRenderer(console).step).list_packages(file_path)
    # Plain output for scripting
    for name in names:
        typer.echo(name)


def caches_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
) -> None:
    """Show each package's cache slot and whether it is up to date."""
    renderer = OutcomeRenderer(console)
    with reporting_errors():
        statuses = make_orchestrator(ctx, renderer.step).cache_status(file_path)
    renderer.print_slots(statuses)


def clean_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(
        None,
        help="Only remove the cache slots of this container file.",
    ),
) -> None:
    """Remove everything in the cache directory."""
    settings = get_settings(ctx)
    with reporting_errors():
        removed = make_orchestrator(ctx, OutcomeRenderer(console).step).clean(file_path)
    console.print(
        f"[bold green]Removed {removed} cache entr{'y' if removed == 1 else 'ies'}[/bold green] "
        f"[dim]({settings.cache_root})[/dim]"
    )
