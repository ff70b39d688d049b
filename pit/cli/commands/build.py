"""``pit build FILE`` and ``pit check FILE``.

Build debug binaries for every package in a container file (or one with
``--package``), skipping packages whose identity hash is unchanged. ``check``
runs the build tool's lighter verification step instead and never touches
the identity record.
"""

from __future__ import annotations

from pathlib import Path

import typer

from pit.cli.context import console, exit_for, get_settings, make_orchestrator, reporting_errors
from pit.cli.render import OutcomeRenderer


def build_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
    package: str = typer.Option(
        None,
        "--package",
        "-p",
        help="Build only the specified package.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Do not print build tool log messages.",
    ),
    jobs: int = typer.Option(
        0,
        "--jobs",
        "-j",
        help="Build up to N packages in parallel (0 uses PIT_JOBS).",
    ),
) -> None:
    """Build all packages in a container file."""
    settings = get_settings(ctx)
    quiet = quiet or settings.quiet
    renderer = OutcomeRenderer(console, quiet=quiet)
    with reporting_errors():
        orchestrator = make_orchestrator(ctx, renderer.step)
        outcomes = orchestrator.build(
            file_path, package, quiet=quiet, jobs=jobs or None
        )
    renderer.print_outcomes(outcomes)
    exit_for(outcomes)


def check_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
    package: str = typer.Option(
        None,
        "--package",
        "-p",
        help="Check only the specified package.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Do not print build tool log messages.",
    ),
    jobs: int = typer.Option(
        0,
        "--jobs",
        "-j",
        help="Check up to N packages in parallel (0 uses PIT_JOBS).",
    ),
) -> None:
    """Check all packages in a container file without producing binaries."""
    settings = get_settings(ctx)
    quiet = quiet or settings.quiet
    renderer = OutcomeRenderer(console, quiet=quiet)
    with reporting_errors():
        orchestrator = make_orchestrator(ctx, renderer.step)
        outcomes = orchestrator.check(
            file_path, package, quiet=quiet, jobs=jobs or None
        )
    renderer.print_outcomes(outcomes)
    exit_for(outcomes)
