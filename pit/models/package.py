"""Package model — one buildable unit extracted from a container file."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

DEFAULT_MANIFEST_PREFIX = "//#"
DEFAULT_SEPARATOR = "//# ---"


class Package(BaseModel):
    """A named manifest + source pair.

    Packages are rebuilt from the container file on every invocation and are
    never persisted. The name is always the ``[package].name`` field of the
    manifest; the parser guarantees it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    manifest: str
    source: str = ""

    def to_text(self, prefix: str = DEFAULT_MANIFEST_PREFIX) -> str:
        """Serialize back into container-file form.

        Manifest lines get the prefix (plus one space when non-empty), then a
        blank line, then the source verbatim.
        """
        lines = [f"{prefix} {line}" if line else prefix for line in self.manifest.split("\n")]
        text = "\n".join(lines) + "\n"
        if self.source:
            text += "\n" + self.source + "\n"
        return text
