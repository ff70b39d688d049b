"""Main Typer application — imports and registers all CLI commands.

Entry point: ``pit`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

from pathlib import Path

import typer

from pit.cli.commands.build import build_cmd, check_cmd
from pit.cli.commands.listing import caches_cmd, clean_cmd, list_cmd
from pit.cli.commands.release import release_cmd
from pit.cli.commands.run import run_cmd
from pit.cli.commands.scaffold import add_cmd, extract_cmd, init_cmd
from pit.config import PitSettings
from pit.logging_setup import configure_logging

app = typer.Typer(
    name="pit",
    help="pit: keep many runnable snippets in one file and build them incrementally.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    cache_root: Path = typer.Option(
        None,
        "--cache-root",
        help="Cache directory (default: PIT_CACHE_ROOT or <tmp>/pit).",
    ),
    build_tool: str = typer.Option(
        None,
        "--build-tool",
        help="Build tool executable (default: PIT_BUILD_TOOL or cargo).",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: PIT_LOG_LEVEL or WARNING).",
    ),
) -> None:
    """Resolve settings once for every subcommand."""
    obj = ctx.ensure_object(dict)
    overrides = {
        key: value
        for key, value in {
            "cache_root": cache_root,
            "build_tool": build_tool,
            "log_level": log_level,
        }.items()
        if value is not None
    }
    settings = obj.get("settings") or PitSettings()
    if overrides:
        settings = settings.model_copy(update=overrides)
    obj["settings"] = settings
    configure_logging(settings.log_level)


# Register subcommands
app.command(name="run", help="Run all packages in a file.")(run_cmd)
app.command(name="build", help="Build all packages in a file.")(build_cmd)
app.command(name="check", help="Check all packages in a file.")(check_cmd)
app.command(name="release", help="Build in release mode and copy the binaries out.")(release_cmd)
app.command(name="list", help="List all packages in a file.")(list_cmd)
app.command(name="caches", help="Show the cache slots of a file's packages.")(caches_cmd)
app.command(name="clean", help="Remove everything in the cache directory.")(clean_cmd)
app.command(name="init", help="Create a new file with one empty package.")(init_cmd)
app.command(name="add", help="Add an empty package on top of a file.")(add_cmd)
app.command(name="extract", help="Write one package out as a standalone project.")(extract_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
