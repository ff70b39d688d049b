"""Cache slot model — a read-only snapshot of one package's on-disk slot."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class CacheSlot(BaseModel):
    """Snapshot of ``<root>/<container_id>/<package_name>``.

    ``artifact_dir`` is where the build tool's output tree rests between
    builds; ``identity_file`` holds the hash of the last successful debug
    build. ``stored_identity`` is None when the marker is absent.
    """

    model_config = ConfigDict(frozen=True)

    container_id: str
    package_name: str
    slot_path: Path
    artifact_dir: Path
    identity_file: Path
    has_artifacts: bool = False
    stored_identity: str | None = None


class SlotStatus(BaseModel):
    """A package's slot compared against the package's current content."""

    model_config = ConfigDict(frozen=True)

    slot: CacheSlot
    current_identity: str

    @property
    def up_to_date(self) -> bool:
        return self.slot.stored_identity == self.current_identity
