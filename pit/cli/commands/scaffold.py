"""``pit init``, ``pit add`` and ``pit extract`` — container file scaffolding."""

from __future__ import annotations

from pathlib import Path

import typer

from pit.cli.context import console, get_settings, make_orchestrator, reporting_errors
from pit.cli.render import OutcomeRenderer
from pit.core.scaffold import add_package, init_container


def init_cmd(
    ctx: typer.Context,
    file_name: str = typer.Argument(..., help="Name of the container file to create."),
    out_dir: Path = typer.Option(
        Path("."),
        "--out-dir",
        "-o",
        help="Directory to create the file in.",
    ),
    name: str = typer.Option(
        None,
        "--name",
        "-n",
        help="Package name (random tmp-* name if omitted).",
    ),
) -> None:
    """Create a new container file holding one empty package."""
    settings = get_settings(ctx)
    file_path = out_dir / file_name
    with reporting_errors():
        package = init_container(file_path, name=name, prefix=settings.manifest_prefix)
    console.print(f"Created [bold]{file_path}[/bold] with package [cyan]{package.name}[/cyan]")


def add_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file to add a package to."),
    name: str = typer.Option(
        None,
        "--name",
        "-n",
        help="Package name (random tmp-* name if omitted).",
    ),
) -> None:
    """Add an empty package on top of the given file."""
    settings = get_settings(ctx)
    with reporting_errors():
        package = add_package(
            file_path,
            name=name,
            separator=settings.separator,
            prefix=settings.manifest_prefix,
        )
    console.print(f"Added package [cyan]{package.name}[/cyan] to [bold]{file_path}[/bold]")


def extract_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
    package: str = typer.Option(
        ...,
        "--package",
        "-p",
        help="Package to extract.",
    ),
    out_dir: Path = typer.Option(
        Path("."),
        "--out-dir",
        "-o",
        help="Directory to write the project into.",
    ),
) -> None:
    """Write one package out as a standalone project directory."""
    with reporting_errors():
        orchestrator = make_orchestrator(ctx, OutcomeRenderer(console).step)
        project_dir = orchestrator.extract(file_path, package, out_dir)
    console.print(f"Extracted [cyan]{package}[/cyan] to [bold]{project_dir}[/bold]")
