"""Exception hierarchy shared by the parser, cache, and orchestrator."""

from __future__ import annotations


class PitError(RuntimeError):
    """Base class for every failure pit reports for a package."""

    kind = "error"


class ParseError(PitError):
    """Raised when a container segment has a malformed or nameless manifest."""

    kind = "parse"

    def __init__(self, message: str, *, segment_index: int | None = None) -> None:
        if segment_index is not None:
            message = f"segment {segment_index}: {message}"
        super().__init__(message)
        self.segment_index = segment_index


class CacheConflictError(PitError):
    """Raised when a slot already holds an artifact directory on store."""

    kind = "cache-conflict"


class BuildToolFailure(PitError):
    """Raised when the external build tool exits with a non-zero status."""

    kind = "build"

    def __init__(self, package_name: str, mode: str, returncode: int) -> None:
        super().__init__(
            f"{mode} of package '{package_name}' failed (exit status {returncode})"
        )
        self.package_name = package_name
        self.mode = mode
        self.returncode = returncode


class ExecutionFailure(PitError):
    """Raised when a built executable exits with a non-zero status."""

    kind = "execution"

    def __init__(self, package_name: str, returncode: int) -> None:
        super().__init__(
            f"package '{package_name}' exited with status {returncode}"
        )
        self.package_name = package_name
        self.returncode = returncode


class FilesystemError(PitError):
    """Raised when a move, create, copy or remove on disk fails."""

    kind = "filesystem"


class PackageNotFoundError(PitError):
    """Raised when a requested package name is absent from the container."""

    kind = "not-found"

    def __init__(self, package_name: str, container: str = "") -> None:
        where = f" in {container}" if container else ""
        super().__init__(f"package '{package_name}' not found{where}")
        self.package_name = package_name
