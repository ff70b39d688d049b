"""Ephemeral build workspaces.

Layout of one workspace::

    {base_dir}/pit-{random}/
        {package_name}/
            Cargo.toml
            src/main.rs
            target/        <- not created here; restored from the cache

The random suffix keeps concurrent builds (threads or processes) apart.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Callable
from pathlib import Path

from pit.core.errors import FilesystemError
from pit.models.package import Package

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "Cargo.toml"
SOURCE_DIRNAME = "src"
SOURCE_FILENAME = "main.rs"
TARGET_DIRNAME = "target"
GITIGNORE_CONTENT = "/target\n"


def random_suffix() -> str:
    """Default workspace name source."""
    return uuid.uuid4().hex[:16]


def write_project(package: Package, package_dir: Path) -> None:
    """Materialize ``package`` as a manifest file and a source file."""
    package_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / MANIFEST_FILENAME).write_text(package.manifest, encoding="utf-8")
    src_dir = package_dir / SOURCE_DIRNAME
    src_dir.mkdir(exist_ok=True)
    (src_dir / SOURCE_FILENAME).write_text(package.source, encoding="utf-8")


class Workspace:
    """One throwaway directory tree for a single build attempt.

    Use :meth:`create` rather than the constructor. The workspace is also a
    context manager that removes itself on exit.
    """

    def __init__(self, root: Path, package_name: str) -> None:
        self.root = Path(root)
        self.package_dir = self.root / package_name
        self.target_dir = self.package_dir / TARGET_DIRNAME

    @classmethod
    def create(
        cls,
        package: Package,
        base_dir: Path,
        name_factory: Callable[[], str] = random_suffix,
    ) -> Workspace:
        """Create a fresh, uniquely named workspace holding ``package``."""
        root = Path(base_dir) / f"pit-{name_factory()}"
        try:
            root.mkdir(parents=True)
        except OSError as exc:
            raise FilesystemError(f"cannot create workspace {root}: {exc}") from exc
        try:
            workspace = cls(root, package.name)
            write_project(package, workspace.package_dir)
        except OSError as exc:
            shutil.rmtree(root, ignore_errors=True)
            raise FilesystemError(f"cannot create workspace {root}: {exc}") from exc
        logger.debug("Created workspace %s for %s", root, package.name)
        return workspace

    def remove(self) -> None:
        """Delete the whole tree. Failures are logged, never raised."""
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove workspace %s: %s", self.root, exc)

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.remove()
