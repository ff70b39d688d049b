"""``pit release FILE`` — release-build packages and copy the binaries out.

Release builds always invoke the build tool; the identity cache only ever
short-circuits debug builds. The compiled-artifact directory is still
restored from and stored back into the cache, so dependencies are not
recompiled from scratch.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from pit.cli.context import console, exit_for, get_settings, make_orchestrator, reporting_errors
from pit.cli.render import OutcomeRenderer


def release_cmd(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Container file holding the packages."),
    package: str = typer.Option(
        None,
        "--package",
        "-p",
        help="Release only the specified package.",
    ),
    out_dir: Path = typer.Option(
        Path("."),
        "--out-dir",
        "-o",
        help="Copy final binaries to this directory (created if absent).",
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
    """Build all packages in release mode and copy the binaries to OUT_DIR."""
    settings = get_settings(ctx)
    quiet = quiet or settings.quiet
    renderer = OutcomeRenderer(console, quiet=quiet)
    with reporting_errors():
        orchestrator = make_orchestrator(ctx, renderer.step)
        outcomes = orchestrator.release(
            file_path, out_dir, package, quiet=quiet, jobs=jobs or None
        )
    renderer.print_outcomes(outcomes)

    released = [o for o in outcomes if o.ok]
    if released and not quiet:
        console.print(
            Panel(
                "\n".join(
                    f"[bold]{o.package_name}[/bold]  {o.distributed_to}" for o in released
                ),
                title="[bold]Released binaries[/bold]",
                border_style="green",
                padding=(1, 2),
            )
        )
    exit_for(outcomes)
