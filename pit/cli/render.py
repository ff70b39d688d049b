"""Rich terminal rendering for command outcomes and cache listings.

Color scheme
------------
- green     : BUILT
- cyan      : CACHED
- red       : FAILED
- yellow    : BUILDING
- dim       : UNCHECKED
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from pit.models.cache import SlotStatus
from pit.models.outcomes import PackageOutcome, PackageState
from pit.models.package import Package

_STATE_LABELS: dict[PackageState, str] = {
    PackageState.BUILT: "[green]built[/green]",
    PackageState.CACHED: "[cyan]cached[/cyan]",
    PackageState.FAILED: "[bold red]failed[/bold red]",
    PackageState.BUILDING: "[yellow]building[/yellow]",
    PackageState.UNCHECKED: "[dim]unchecked[/dim]",
}

_STEP_LABELS: dict[str, str] = {
    "fresh": "Fresh",
    "debug": "Build",
    "release": "Release",
    "check": "Check",
    "run": "Run",
}


class OutcomeRenderer:
    """Prints step headers, outcome summaries and cache tables.

    Parameters
    ----------
    console:
        Rich Console instance. A new one is created if not provided.
    quiet:
        Suppress step headers and the summary table; failures still print.
    """

    def __init__(self, console: Console | None = None, *, quiet: bool = False) -> None:
        self.console = console or Console()
        self.quiet = quiet

    def step(self, action: str, package: Package) -> None:
        """Header printed right before a package is built, checked or run."""
        if self.quiet:
            return
        label = _STEP_LABELS.get(action, action.capitalize())
        self.console.print(f"[bold bright_green]{label} {package.name} package[/bold bright_green]")

    def print_outcomes(self, outcomes: list[PackageOutcome]) -> None:
        if not outcomes:
            if not self.quiet:
                self.console.print("[dim]No packages found.[/dim]")
            return

        for outcome in outcomes:
            if not outcome.ok:
                self.console.print(
                    f"[bold red]{outcome.package_name}:[/bold red] {outcome.message}"
                )

        if self.quiet:
            return

        table = Table(title="Packages", show_lines=False)
        table.add_column("Package", style="cyan")
        table.add_column("Command")
        table.add_column("State", justify="center")
        table.add_column("Result")

        for outcome in outcomes:
            if outcome.ok:
                result = "[green]ok[/green]"
                if outcome.distributed_to is not None:
                    result += f" -> {outcome.distributed_to}"
            else:
                result = f"[red]{outcome.error_kind}[/red]"
            table.add_row(
                outcome.package_name,
                outcome.command,
                _STATE_LABELS.get(outcome.state, outcome.state.value),
                result,
            )

        self.console.print(table)

    def print_slots(self, statuses: list[SlotStatus]) -> None:
        if not statuses:
            self.console.print("[dim]No packages found.[/dim]")
            return

        table = Table(title="Cache slots")
        table.add_column("Package", style="cyan")
        table.add_column("Artifacts", justify="center", no_wrap=True)
        table.add_column("Identity", justify="center", no_wrap=True)
        table.add_column("Slot", style="dim")

        for status in statuses:
            slot = status.slot
            artifacts = "[green]yes[/green]" if slot.has_artifacts else "[dim]no[/dim]"
            if slot.stored_identity is None:
                identity = "[dim]none[/dim]"
            elif status.up_to_date:
                identity = "[green]fresh[/green]"
            else:
                identity = "[yellow]stale[/yellow]"
            table.add_row(slot.package_name, artifacts, identity, str(slot.slot_path))

        self.console.print(table)
