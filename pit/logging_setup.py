"""Logging initialisation for the command-line entry point."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "pit-rich"


def _parse_level(level_text: str) -> int:
    return getattr(logging, str(level_text).upper(), logging.WARNING)


def configure_logging(level: str = "WARNING", *, console: Console | None = None) -> None:
    """Attach a single RichHandler writing to stderr to the ``pit`` logger.

    Calling this more than once replaces the handler instead of stacking a
    second one, so repeated CLI invocations in one process (tests) stay quiet.
    """
    logger = logging.getLogger("pit")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(_parse_level(level))
