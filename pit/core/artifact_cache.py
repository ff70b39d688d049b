"""Persistent build-artifact cache.

Storage layout::

    {root}/{container_id}/{package_name}/target/          build output tree
    {root}/{container_id}/{package_name}/identity_hash    last debug-build hash

The ``target`` directory is owned by exactly one place at a time. During a
build it is moved into the workspace and moved back afterwards; it is never
copied. Nothing here guards against two processes working on the same slot.
"""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import Protocol, runtime_checkable

from pit.core.errors import CacheConflictError, FilesystemError
from pit.models.cache import CacheSlot
from pit.models.outcomes import BuildMode

logger = logging.getLogger(__name__)

ARTIFACT_DIRNAME = "target"
IDENTITY_FILENAME = "identity_hash"


def executable_name(package_name: str) -> str:
    """File name of a package's binary on this platform."""
    if sys.platform.startswith("win"):
        return f"{package_name}.exe"
    return package_name


# ---------------------------------------------------------------------------
# Directory moves
# ---------------------------------------------------------------------------


@runtime_checkable
class DirectoryMover(Protocol):
    """Moves a whole directory tree from ``src`` to a not-yet-existing ``dst``.

    Implementations must behave like a rename: afterwards ``src`` is gone and
    ``dst`` holds the exact same tree.
    """

    def move(self, src: Path, dst: Path) -> None:
        ...


class RenameMover:
    """Default mover: a single filesystem rename.

    Fails with ``OSError`` when ``src`` and ``dst`` are on different devices.
    """

    def move(self, src: Path, dst: Path) -> None:
        Path(src).rename(dst)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ArtifactCache:
    """Slots keyed by ``(container_id, package_name)`` under one root.

    Parameters
    ----------
    root:
        Cache root directory. Created on the first write, never by reads.
    mover:
        Strategy used to transfer artifact directories. Defaults to
        :class:`RenameMover`.
    """

    def __init__(self, root: Path, mover: DirectoryMover | None = None) -> None:
        self._root = Path(root)
        self._mover = mover or RenameMover()

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _slot_path(self, container_id: str, package_name: str) -> Path:
        return self._root / container_id / package_name

    def _artifact_dir(self, container_id: str, package_name: str) -> Path:
        return self._slot_path(container_id, package_name) / ARTIFACT_DIRNAME

    def _identity_file(self, container_id: str, package_name: str) -> Path:
        return self._slot_path(container_id, package_name) / IDENTITY_FILENAME

    def executable_path(
        self, container_id: str, package_name: str, mode: BuildMode
    ) -> Path:
        """Where the build tool leaves the binary for ``mode`` inside the slot."""
        if mode not in (BuildMode.DEBUG, BuildMode.RELEASE):
            raise ValueError(f"{mode.value} builds produce no executable")
        return (
            self._artifact_dir(container_id, package_name)
            / mode.value
            / executable_name(package_name)
        )

    def slot(self, container_id: str, package_name: str) -> CacheSlot:
        """Return a snapshot of the slot's current on-disk state."""
        return CacheSlot(
            container_id=container_id,
            package_name=package_name,
            slot_path=self._slot_path(container_id, package_name),
            artifact_dir=self._artifact_dir(container_id, package_name),
            identity_file=self._identity_file(container_id, package_name),
            has_artifacts=self._artifact_dir(container_id, package_name).is_dir(),
            stored_identity=self.stored_identity(container_id, package_name),
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def stored_identity(self, container_id: str, package_name: str) -> str | None:
        """The hash recorded by the last successful debug build, if any."""
        path = self._identity_file(container_id, package_name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Unreadable identity marker %s: %s", path, exc)
            return None

    def is_up_to_date(self, container_id: str, package_name: str, new_hash: str) -> bool:
        """True iff an identity is stored for the slot and equals ``new_hash``."""
        return self.stored_identity(container_id, package_name) == new_hash

    def record_hash(self, container_id: str, package_name: str, new_hash: str) -> None:
        """Persist ``new_hash`` as the slot's identity."""
        path = self._identity_file(container_id, package_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(new_hash, encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(f"cannot write identity marker {path}: {exc}") from exc
        logger.debug("Recorded identity %s for %s/%s", new_hash[:12], container_id, package_name)

    def invalidate(self, container_id: str, package_name: str) -> None:
        """Forget the stored identity; the artifact directory is kept."""
        path = self._identity_file(container_id, package_name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(f"cannot remove identity marker {path}: {exc}") from exc
        logger.info("Invalidated cache identity for %s/%s", container_id, package_name)

    # ------------------------------------------------------------------
    # Artifact directory transfer
    # ------------------------------------------------------------------

    def restore(
        self, container_id: str, package_name: str, workspace_target_dir: Path
    ) -> None:
        """Move the slot's artifact directory into a workspace.

        When the slot holds nothing yet, an empty directory is created at
        ``workspace_target_dir`` instead.
        """
        artifact_dir = self._artifact_dir(container_id, package_name)
        target = Path(workspace_target_dir)
        if target.exists():
            raise CacheConflictError(
                f"workspace already contains build output at {target}"
            )
        try:
            if artifact_dir.is_dir():
                target.parent.mkdir(parents=True, exist_ok=True)
                self._mover.move(artifact_dir, target)
                logger.debug("Restored %s -> %s", artifact_dir, target)
            else:
                target.mkdir(parents=True)
                logger.debug("No cached artifacts for %s/%s", container_id, package_name)
        except OSError as exc:
            raise FilesystemError(
                f"cannot restore artifacts for '{package_name}': {exc}"
            ) from exc

    def store(
        self, container_id: str, package_name: str, workspace_target_dir: Path
    ) -> None:
        """Move a workspace's build output back into the slot.

        Raises
        ------
        CacheConflictError
            If the slot already holds an artifact directory, meaning an
            earlier restore was lost or another build shares the slot.
        """
        artifact_dir = self._artifact_dir(container_id, package_name)
        if artifact_dir.exists():
            raise CacheConflictError(
                f"cache slot for '{package_name}' already holds {artifact_dir}"
            )
        try:
            artifact_dir.parent.mkdir(parents=True, exist_ok=True)
            self._mover.move(Path(workspace_target_dir), artifact_dir)
        except OSError as exc:
            raise FilesystemError(
                f"cannot store artifacts for '{package_name}': {exc}"
            ) from exc
        logger.debug("Stored %s -> %s", workspace_target_dir, artifact_dir)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def list_slots(self, container_id: str | None = None) -> list[CacheSlot]:
        """Snapshots of every slot, or only those of one container."""
        if container_id is not None:
            containers = [self._root / container_id]
        elif self._root.is_dir():
            containers = sorted(p for p in self._root.iterdir() if p.is_dir())
        else:
            containers = []
        slots: list[CacheSlot] = []
        for container_dir in containers:
            if not container_dir.is_dir():
                continue
            for slot_dir in sorted(p for p in container_dir.iterdir() if p.is_dir()):
                slots.append(self.slot(container_dir.name, slot_dir.name))
        return slots

    def clean(self, container_id: str | None = None) -> int:
        """Delete every slot (or one container's slots). Returns entries removed."""
        if container_id is not None:
            entries = [self._root / container_id]
        elif self._root.is_dir():
            entries = list(self._root.iterdir())
        else:
            entries = []
        removed = 0
        for entry in entries:
            if not entry.exists():
                continue
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as exc:
                raise FilesystemError(f"cannot remove {entry}: {exc}") from exc
            removed += 1
        logger.info("Removed %d cache entr%s from %s", removed, "y" if removed == 1 else "ies", self._root)
        return removed
