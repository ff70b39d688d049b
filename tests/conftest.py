"""Shared test fixtures for pit."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from pathlib import Path

import pytest

from pit.config import PitSettings
from pit.core.artifact_cache import ArtifactCache, executable_name
from pit.core.orchestrator import Orchestrator
from pit.models.outcomes import BuildMode


ALPHA_BETA = """\
//# [package]
//# name = "alpha"
//# version = "0.1.0"
//# edition = "2021"

fn main() {
    println!("alpha");
}

//# ---

//# [package]
//# name = "beta"
//# version = "0.1.0"
//# edition = "2021"
//#
//# [dependencies]
//# rand = "*"

fn main() {
    println!("beta");
}
"""


# ---------------------------------------------------------------------------
# Recording fakes for the external collaborators
# ---------------------------------------------------------------------------


class FakeBuildTool:
    """Stands in for cargo.

    Records every call, writes a fake binary into ``target/<mode>/`` and a
    ``deps`` counter file so tests can see the artifact tree survive moves.
    ``exit_codes`` maps package name to the status to return (default 0).
    """

    def __init__(self, exit_codes: dict[str, int] | None = None) -> None:
        self.exit_codes = dict(exit_codes or {})
        self.calls: list[tuple[str, BuildMode, bool]] = []
        self.target_existed: list[bool] = []
        self.manifests: list[str] = []

    def calls_for(self, package_name: str) -> list[tuple[str, BuildMode, bool]]:
        return [call for call in self.calls if call[0] == package_name]

    def invoke(self, package_dir: Path, mode: BuildMode, quiet: bool) -> int:
        name = package_dir.name
        self.calls.append((name, mode, quiet))
        target = package_dir / "target"
        self.target_existed.append(target.is_dir())
        self.manifests.append((package_dir / "Cargo.toml").read_text(encoding="utf-8"))

        target.mkdir(exist_ok=True)
        deps = target / "deps"
        count = int(deps.read_text()) if deps.exists() else 0
        deps.write_text(str(count + 1))

        code = self.exit_codes.get(name, 0)
        if code == 0 and mode != BuildMode.CHECK:
            out = target / mode.value
            out.mkdir(exist_ok=True)
            (out / executable_name(name)).write_text(f"binary:{name}:{mode.value}")
        return code


class FakeRunner:
    """Stands in for running a produced binary."""

    def __init__(self, exit_codes: dict[str, int] | None = None) -> None:
        self.exit_codes = dict(exit_codes or {})
        self.executed: list[Path] = []

    def run(self, executable: Path) -> int:
        self.executed.append(executable)
        return self.exit_codes.get(executable.name.removesuffix(".exe"), 0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> PitSettings:
    """Settings pointing every directory into the test's temp dir."""
    return PitSettings(
        cache_root=tmp_path / "cache",
        workspace_root=tmp_path / "work",
        jobs=1,
        quiet=False,
    )


@pytest.fixture
def cache(settings: PitSettings) -> ArtifactCache:
    """A fresh ArtifactCache in a temp directory."""
    return ArtifactCache(settings.cache_root)


@pytest.fixture
def build_tool() -> FakeBuildTool:
    return FakeBuildTool()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def name_factory() -> Callable[[], str]:
    """Deterministic workspace suffixes: ws0, ws1, ..."""
    counter = itertools.count()
    return lambda: f"ws{next(counter)}"


@pytest.fixture
def orchestrator(
    settings: PitSettings,
    cache: ArtifactCache,
    build_tool: FakeBuildTool,
    runner: FakeRunner,
    name_factory: Callable[[], str],
) -> Orchestrator:
    """An Orchestrator wired to the recording fakes."""
    return Orchestrator(
        settings,
        cache=cache,
        build_tool=build_tool,
        runner=runner,
        name_factory=name_factory,
    )


@pytest.fixture
def container_file(tmp_path: Path) -> Path:
    """A container file with ``alpha`` then ``beta``."""
    path = tmp_path / "snippets.rs"
    path.write_text(ALPHA_BETA, encoding="utf-8")
    return path
