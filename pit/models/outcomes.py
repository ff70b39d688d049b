"""Per-package build states and command outcomes."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BuildMode(str, Enum):
    """How the external build tool is invoked."""

    DEBUG = "debug"
    RELEASE = "release"
    CHECK = "check"


class PackageState(str, Enum):
    """Lifecycle of one package within one command invocation."""

    UNCHECKED = "unchecked"
    CACHED = "cached"
    BUILDING = "building"
    BUILT = "built"
    FAILED = "failed"


# Terminal states (CACHED, BUILT, FAILED) have no outgoing transitions.
VALID_TRANSITIONS: dict[PackageState, set[PackageState]] = {
    PackageState.UNCHECKED: {
        PackageState.CACHED,
        PackageState.BUILDING,
        PackageState.FAILED,
    },
    PackageState.BUILDING: {PackageState.BUILT, PackageState.FAILED},
    PackageState.CACHED: set(),
    PackageState.BUILT: set(),
    PackageState.FAILED: set(),
}


class PackageOutcome(BaseModel):
    """What happened to one package during one command.

    ``error_kind`` distinguishes "didn't build" (``build``) from "built but
    crashed" (``execution``) and from parse, filesystem and cache problems.
    """

    model_config = ConfigDict(frozen=True)

    package_name: str
    command: str
    state: PackageState = PackageState.UNCHECKED
    executed: bool = False
    exit_code: int | None = None
    error_kind: str | None = None
    message: str = ""
    executable: Path | None = None
    distributed_to: Path | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None
