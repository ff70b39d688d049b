"""``pit run FILE`` — build if needed, then execute each package.

Packages whose manifest and source are unchanged since their last successful
debug build are executed straight from the cache. A program that exits
non-zero is reported as an execution failure, not a build failure.
"""

from __future__ import annotations

from pathlib import Path

import typer

from pit.cli.context import console, exit_for, get_settings, make_orchestrator, reporting_errors
from pit.cli.render import OutcomeRenderer


def run_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
    package: str = typer.Option(
        None,
        "--package",
        "-p",
        help="Run only the specified package.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Do not print build tool log messages.",
    ),
) -> None:
    """Run all packages in a container file, in file order."""
    settings = get_settings(ctx)
    quiet = quiet or settings.quiet
    renderer = OutcomeRenderer(console, quiet=quiet)
    with reporting_errors():
        orchestrator = make_orchestrator(ctx, renderer.step)
        outcomes = orchestrator.run(file_path, package, quiet=quiet)
    # The programs' own output is the result; only failures are repeated.
    OutcomeRenderer(console, quiet=True).print_outcomes(outcomes)
    exit_for(outcomes)
