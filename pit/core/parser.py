"""Container file parser.

A container file holds one or more packages separated by lines consisting
solely of the separator token (``//# ---``). Within a segment::

    //# [package]          <- manifest lines: prefix + one space stripped
    //# name = "alpha"
    //#
    //# [dependencies]

    fn main() {}           <- source: everything from here on, verbatim

Parsing is a pure transformation over text; only :func:`read_container` and
:func:`load_container` touch the filesystem.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from pit.core.errors import ParseError
from pit.core.hasher import container_id
from pit.models.package import DEFAULT_MANIFEST_PREFIX, DEFAULT_SEPARATOR, Package

logger = logging.getLogger(__name__)


def _is_blank(line: str) -> bool:
    return not line.strip()


def split_segments(text: str, separator: str = DEFAULT_SEPARATOR) -> list[str]:
    """Split container text on separator lines.

    Segments holding nothing but whitespace are dropped, so an empty file has
    zero segments. A file without any separator is a single segment.
    """
    segments: list[str] = []
    current: list[str] = []
    for line in text.split("\n"):
        if line.strip() == separator:
            segments.append("\n".join(current))
            current = []
        else:
            current.append(line)
    segments.append("\n".join(current))
    return [segment for segment in segments if segment.strip()]


def _strip_prefix(line: str, prefix: str) -> str:
    rest = line[len(prefix):].rstrip("\r")
    return rest[1:] if rest.startswith(" ") else rest


def parse_package(
    segment: str,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
    *,
    segment_index: int | None = None,
) -> Package:
    """Parse one segment into a :class:`Package`.

    Raises
    ------
    ParseError
        If the manifest is not valid TOML or lacks a string
        ``[package].name``.
    """
    lines = segment.split("\n")

    pos = 0
    while pos < len(lines) and _is_blank(lines[pos]):
        pos += 1

    manifest_lines: list[str] = []
    while pos < len(lines) and lines[pos].startswith(prefix):
        manifest_lines.append(_strip_prefix(lines[pos], prefix))
        pos += 1

    # Stray prefixed lines between the manifest and the code belong to neither.
    while pos < len(lines) and (_is_blank(lines[pos]) or lines[pos].startswith(prefix)):
        pos += 1

    source_lines = lines[pos:]
    while source_lines and _is_blank(source_lines[-1]):
        source_lines.pop()

    manifest = "\n".join(manifest_lines)
    source = "\n".join(source_lines)

    try:
        document = tomllib.loads(manifest)
    except tomllib.TOMLDecodeError as exc:
        raise ParseError(f"malformed manifest: {exc}", segment_index=segment_index) from exc

    table = document.get("package")
    name = table.get("name") if isinstance(table, dict) else None
    if not isinstance(name, str) or not name:
        raise ParseError(
            "manifest has no [package] name field", segment_index=segment_index
        )
    # Names become directory names in the cache and the workspace.
    if name in (".", "..") or any(sep in name for sep in ("/", "\\", "\0")):
        raise ParseError(
            f"package name {name!r} is not a valid directory name",
            segment_index=segment_index,
        )

    return Package(name=name, manifest=manifest, source=source)


def parse_packages_lenient(
    text: str,
    separator: str = DEFAULT_SEPARATOR,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
) -> tuple[list[Package], list[ParseError]]:
    """Parse every segment, collecting errors instead of stopping at the first.

    A segment whose name repeats an earlier package is reported as an error
    and left out, so names stay unique within the result.
    """
    packages: list[Package] = []
    errors: list[ParseError] = []
    seen: set[str] = set()

    for index, segment in enumerate(split_segments(text, separator)):
        try:
            package = parse_package(segment, prefix, segment_index=index)
        except ParseError as exc:
            logger.debug("Skipping unparsable segment %d: %s", index, exc)
            errors.append(exc)
            continue
        if package.name in seen:
            errors.append(
                ParseError(
                    f"duplicate package name '{package.name}'",
                    segment_index=index,
                )
            )
            continue
        seen.add(package.name)
        packages.append(package)

    return packages, errors


def parse_packages(
    text: str,
    separator: str = DEFAULT_SEPARATOR,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
) -> list[Package]:
    """Parse container text into packages in file order, strictly.

    Raises the first :class:`ParseError` encountered.
    """
    packages, errors = parse_packages_lenient(text, separator, prefix)
    if errors:
        raise errors[0]
    return packages


def read_container(
    path: Path,
    separator: str = DEFAULT_SEPARATOR,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
) -> list[Package]:
    """Read a container file from disk and parse it strictly."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_packages(text, separator, prefix)


class Container(BaseModel):
    """A parsed container file together with its cache key."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: Path
    container_id: str
    packages: list[Package]
    errors: list[ParseError] = []

    @property
    def names(self) -> list[str]:
        return [package.name for package in self.packages]

    def find(self, package_name: str) -> Package | None:
        return next((p for p in self.packages if p.name == package_name), None)


def load_container(
    path: Path,
    separator: str = DEFAULT_SEPARATOR,
    prefix: str = DEFAULT_MANIFEST_PREFIX,
) -> Container:
    """Read and leniently parse a container file.

    Malformed segments end up in ``errors`` so their siblings can still be
    processed.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    packages, errors = parse_packages_lenient(text, separator, prefix)
    return Container(
        path=path,
        container_id=container_id(path),
        packages=packages,
        errors=errors,
    )
