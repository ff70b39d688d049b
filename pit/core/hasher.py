"""Hashing helpers for identity checks and cache keys.

Only text content feeds these digests — never timestamps, file ordering or
filesystem metadata — so results are stable across processes and platforms.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from pit.models.package import Package


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def identity_hash(package: Package) -> str:
    """SHA-256 of the manifest bytes followed by the source bytes.

    The order is fixed, so swapping the two fields gives a different
    identity. There is no delimiter: shifting text across the boundary
    between manifest and source does not. Cosmetic manifest changes count.
    """
    digest = hashlib.sha256()
    digest.update(package.manifest.encode("utf-8"))
    digest.update(package.source.encode("utf-8"))
    return digest.hexdigest()


def container_id(path: Path) -> str:
    """Cache key for a container file: ``<stem>-<8 hex of resolved path>``.

    The path suffix keeps ``a/snippets.rs`` and ``b/snippets.rs`` from
    sharing cache slots.
    """
    resolved = Path(path).resolve()
    return f"{resolved.stem}-{sha256_hex(str(resolved).encode('utf-8'))[:8]}"
