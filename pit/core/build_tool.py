"""External collaborators: the build tool and the produced executable.

Both are opaque subprocesses judged only by exit status. Output is passed
through to the terminal unmodified. The orchestrator depends on the
``BuildTool`` and ``ExecutableRunner`` protocols, so tests substitute
recording fakes.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from pit.models.outcomes import BuildMode

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class BuildTool(Protocol):
    """Anything that can build or check a materialized package directory."""

    def invoke(self, package_dir: Path, mode: BuildMode, quiet: bool) -> int:
        """Run the tool inside ``package_dir`` and return its exit status."""
        ...


@runtime_checkable
class ExecutableRunner(Protocol):
    """Anything that can run a produced binary."""

    def run(self, executable: Path) -> int:
        """Run ``executable`` with no arguments and return its exit status."""
        ...


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


class CargoBuildTool:
    """Invokes ``cargo build [--release] [--quiet]`` or ``cargo check [--quiet]``.

    Parameters
    ----------
    program:
        Executable name or path of the build tool.
    """

    def __init__(self, program: str = "cargo") -> None:
        self.program = program

    def command(self, mode: BuildMode, quiet: bool) -> list[str]:
        if mode == BuildMode.CHECK:
            argv = [self.program, "check"]
        else:
            argv = [self.program, "build"]
            if mode == BuildMode.RELEASE:
                argv.append("--release")
        if quiet:
            argv.append("--quiet")
        return argv

    def invoke(self, package_dir: Path, mode: BuildMode, quiet: bool) -> int:
        argv = self.command(mode, quiet)
        logger.debug("Running %s in %s", " ".join(argv), package_dir)
        completed = subprocess.run(argv, cwd=package_dir, check=False)
        return completed.returncode


class SubprocessRunner:
    """Runs a binary as a child process, inheriting stdio."""

    def run(self, executable: Path) -> int:
        logger.debug("Executing %s", executable)
        completed = subprocess.run([str(executable)], check=False)
        return completed.returncode
