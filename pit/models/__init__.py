"""pit data models — Pydantic v2, frozen (immutable)."""

from pit.models.cache import CacheSlot, SlotStatus
from pit.models.outcomes import (
    VALID_TRANSITIONS,
    BuildMode,
    PackageOutcome,
    PackageState,
)
from pit.models.package import DEFAULT_MANIFEST_PREFIX, DEFAULT_SEPARATOR, Package

__all__ = [
    # package
    "Package",
    "DEFAULT_MANIFEST_PREFIX",
    "DEFAULT_SEPARATOR",
    # cache
    "CacheSlot",
    "SlotStatus",
    # outcomes
    "BuildMode",
    "PackageState",
    "PackageOutcome",
    "VALID_TRANSITIONS",
]
