"""Helpers shared by the CLI commands.

The root callback stores a :class:`PitSettings` in ``ctx.obj["settings"]``.
Tests may pre-seed ``ctx.obj["orchestrator_factory"]`` to swap in fake
collaborators.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from pit.config import PitSettings
from pit.core.errors import PitError
from pit.core.orchestrator import Orchestrator, StepHook
from pit.models.outcomes import PackageOutcome

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[PitSettings, StepHook], Orchestrator]

console = Console()


def _default_factory(settings: PitSettings, on_step: StepHook) -> Orchestrator:
    return Orchestrator(settings, on_step=on_step)


def get_settings(ctx: typer.Context) -> PitSettings:
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        settings = PitSettings()
        obj["settings"] = settings
    return settings


def make_orchestrator(ctx: typer.Context, on_step: StepHook) -> Orchestrator:
    obj = ctx.ensure_object(dict)
    factory: OrchestratorFactory = obj.get("orchestrator_factory", _default_factory)
    return factory(get_settings(ctx), on_step)


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Print container-level failures in red and exit with status 1."""
    try:
        yield
    except PitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)


def exit_for(outcomes: list[PackageOutcome]) -> None:
    """Exit 1 when any package failed."""
    failed = [o.package_name for o in outcomes if not o.ok]
    if failed:
        logger.debug("Failed packages: %s", ", ".join(failed))
        raise typer.Exit(code=1)
