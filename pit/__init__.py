"""pit: keep many runnable snippets in one file and build them incrementally.

Each snippet in a container file carries its own embedded manifest as
``//#``-prefixed lines. Packages are built in throwaway workspaces while their
compiled-artifact directories live in a persistent, content-checked cache, so
unchanged snippets are never rebuilt on ``run``.
"""

__version__ = "0.3.0"
__description__ = "Build, run and release many snippets kept in one file."

from pit.core.orchestrator import Orchestrator
from pit.cli.app import app as cli

__all__ = ["Orchestrator", "cli", "__version__"]
