"""pit CLI — Typer-based command-line interface.

Provides the ``pit`` command with subcommands to run, build, check and
release the packages of a container file, inspect and clean the cache, and
scaffold new container files.

All output uses Rich for formatted terminal display.
"""
