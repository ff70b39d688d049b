"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings. Values are read from a .env
file and PIT_* environment variables once, by the CLI callback, then handed
explicitly to the components that need them.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_cache_root() -> Path:
    return Path(tempfile.gettempdir()) / "pit"


class PitSettings(BaseSettings):
    """Settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export PIT_CACHE_ROOT=$HOME/.cache/pit
        export PIT_BUILD_TOOL=/opt/cargo/bin/cargo
        export PIT_JOBS=4
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PIT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage paths
    cache_root: Path = _default_cache_root()
    # None: workspaces live beside cache_root so moves stay on one filesystem.
    workspace_root: Path | None = None

    # Build tool
    build_tool: str = "cargo"
    quiet: bool = False
    jobs: int = 1

    # Container file format
    separator: str = "//# ---"
    manifest_prefix: str = "//#"

    # Observability
    log_level: str = "WARNING"

    @property
    def parallel(self) -> bool:
        """Whether packages are fanned out over a worker pool."""
        return self.jobs > 1

    @property
    def workspace_dir(self) -> Path:
        """Where ephemeral build workspaces are created."""
        if self.workspace_root is not None:
            return self.workspace_root
        return self.cache_root.parent / f"{self.cache_root.name}-work"
