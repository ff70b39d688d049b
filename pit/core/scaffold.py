"""Container file scaffolding: new files, new packages, and extraction.

``init`` writes a fresh container holding one template package, ``add``
prepends a template package to an existing container, and ``extract`` turns
one package into a standalone project directory.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path

from pit.core.errors import FilesystemError
from pit.core.workspace import GITIGNORE_CONTENT, write_project
from pit.models.package import DEFAULT_MANIFEST_PREFIX, DEFAULT_SEPARATOR, Package

logger = logging.getLogger(__name__)

_NAME_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"

TEMPLATE_MANIFEST = """\
[package]
name = "{name}"
version = "0.1.0"
edition = "2021"

[dependencies]

[profile.release]
lto = true"""

TEMPLATE_SOURCE = """\
fn main() {
}"""


def random_name(rng: random.Random | None = None) -> str:
    """A throwaway package name such as ``tmp-k3v9q0a``."""
    chooser = rng or random.SystemRandom()
    return "tmp-" + "".join(chooser.sample(_NAME_ALPHABET, 7))


def template_package(name: str) -> Package:
    return Package(
        name=name,
        manifest=TEMPLATE_MANIFEST.format(name=name),
        source=TEMPLATE_SOURCE,
    )


def init_container(
    file_path: Path,
    *,
    name: str | None = None,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
) -> Package:
    """Create ``file_path`` holding one template package.

    Refuses to overwrite an existing file.
    """
    file_path = Path(file_path)
    if file_path.exists():
        raise FilesystemError(f"{file_path} already exists")
    package = template_package(name or random_name())
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(package.to_text(prefix), encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"cannot write {file_path}: {exc}") from exc
    logger.info("Initialized %s with package %s", file_path, package.name)
    return package


def add_package(
    file_path: Path,
    *,
    name: str | None = None,
    separator: str = DEFAULT_SEPARATOR,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
) -> Package:
    """Prepend a template package and a separator line to ``file_path``."""
    file_path = Path(file_path)
    package = template_package(name or random_name())
    try:
        existing = file_path.read_text(encoding="utf-8")
        content = f"{package.to_text(prefix)}\n{separator}\n\n{existing}"
        file_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"cannot update {file_path}: {exc}") from exc
    logger.info("Added package %s to %s", package.name, file_path)
    return package


def extract_package(package: Package, out_dir: Path) -> Path:
    """Write ``package`` as ``<out_dir>/<name>/`` with a ``.gitignore``.

    Returns the project directory.
    """
    package_dir = Path(out_dir) / package.name
    try:
        write_project(package, package_dir)
        (package_dir / ".gitignore").write_text(GITIGNORE_CONTENT, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"cannot extract '{package.name}': {exc}") from exc
    logger.info("Extracted %s to %s", package.name, package_dir)
    return package_dir
