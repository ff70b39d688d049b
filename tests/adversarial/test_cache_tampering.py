"""Adversarial tests — tampered cache state and hostile container files.

These tests verify that pit:
1. Rebuilds when the identity marker is corrupted or the slot is wiped
2. Reports inconsistent on-disk state per package without losing siblings
3. Refuses package names that would escape the cache or workspace
"""

from __future__ import annotations

import errno
import logging
from pathlib import Path

import pytest

from pit.core.artifact_cache import ArtifactCache, executable_name
from pit.core.errors import ParseError
from pit.core.orchestrator import Orchestrator
from pit.core.parser import parse_package
from pit.models.outcomes import PackageState


def _slot(orchestrator, container_file: Path, name: str):
    return orchestrator.cache.slot(orchestrator.load(container_file).container_id, name)


class TestIdentityMarkerTampering:
    def test_garbage_marker_forces_rebuild(self, orchestrator, container_file, build_tool):
        orchestrator.build(container_file)
        slot = _slot(orchestrator, container_file, "alpha")
        slot.identity_file.write_text("0" * 64)

        outcomes = orchestrator.build(container_file)

        assert outcomes[0].state == PackageState.BUILT
        assert len(build_tool.calls_for("alpha")) == 2
        assert _slot(orchestrator, container_file, "alpha").stored_identity != "0" * 64

    def test_marker_with_trailing_newline_is_not_trusted(self, orchestrator, container_file, build_tool):
        orchestrator.build(container_file)
        slot = _slot(orchestrator, container_file, "alpha")
        slot.identity_file.write_text(slot.stored_identity + "\n")

        orchestrator.build(container_file)

        assert len(build_tool.calls_for("alpha")) == 2

    def test_wiped_slot_rebuilds_from_scratch(self, orchestrator, container_file, build_tool, cache):
        orchestrator.build(container_file)
        cache.clean(orchestrator.load(container_file).container_id)

        outcomes = orchestrator.build(container_file)

        assert [o.state for o in outcomes] == [PackageState.BUILT, PackageState.BUILT]
        # Fresh empty target directories were handed to the tool.
        assert (_slot(orchestrator, container_file, "alpha").artifact_dir / "deps").read_text() == "1"


class TestInconsistentDiskState:
    def test_leftover_workspace_fails_only_that_package(self, orchestrator, container_file, settings):
        # The first workspace name the fixture hands out is already taken.
        (Path(settings.workspace_root) / "pit-ws0").mkdir(parents=True)

        alpha, beta = orchestrator.build(container_file)

        assert alpha.error_kind == "filesystem"
        assert alpha.state == PackageState.FAILED
        assert beta.ok

    def test_artifact_dir_reappearing_mid_build_is_a_conflict(
        self, settings, cache, runner, name_factory, container_file
    ):
        class SquattingTool:
            """Recreates the slot's artifact dir while the build is running."""

            def invoke(self, package_dir, mode, quiet):
                cid = orch.load(container_file).container_id
                cache.slot(cid, package_dir.name).artifact_dir.mkdir(parents=True)
                return 0

        orch = Orchestrator(
            settings, cache=cache, build_tool=SquattingTool(), runner=runner, name_factory=name_factory
        )
        outcomes = orch.build(container_file)

        assert [o.error_kind for o in outcomes] == ["cache-conflict", "cache-conflict"]
        assert all(o.state == PackageState.FAILED for o in outcomes)


class TestHostileNames:
    @pytest.mark.parametrize("name", ["..", ".", "../escape", "a/b", "a\\\\b"])
    def test_path_like_names_rejected(self, name: str):
        segment = f'//# [package]\n//# name = "{name}"\n\nfn main() {{}}'
        with pytest.raises(ParseError, match="not a valid directory name"):
            parse_package(segment)

    def test_hostile_segment_does_not_block_siblings(self, orchestrator, tmp_path, build_tool, cache):
        path = tmp_path / "hostile.rs"
        path.write_text(
            '//# [package]\n//# name = "../../outside"\n\nfn main() {}\n'
            "//# ---\n"
            '//# [package]\n//# name = "safe"\n\nfn main() {}\n'
        )

        outcomes = orchestrator.build(path)

        assert [o.package_name for o in outcomes] == ["safe", "<segment 0>"]
        assert [c[0] for c in build_tool.calls] == ["safe"]
        assert not (cache.root.parent / "outside").exists()


class CrossDeviceStoreMover:
    """Renames like RenameMover, but once armed, moves into the cache fail with EXDEV."""

    def __init__(self, cache_root: Path) -> None:
        self.cache_root = cache_root
        self.fail_store = False

    def move(self, src: Path, dst: Path) -> None:
        if self.fail_store and self.cache_root in dst.parents:
            raise OSError(errno.EXDEV, "Invalid cross-device link")
        src.rename(dst)


class TestFailedStoreKeepsArtifacts:
    @pytest.fixture
    def mover(self, settings) -> CrossDeviceStoreMover:
        return CrossDeviceStoreMover(Path(settings.cache_root))

    @pytest.fixture
    def orch(self, settings, mover, build_tool, runner, name_factory) -> Orchestrator:
        return Orchestrator(
            settings,
            cache=ArtifactCache(settings.cache_root, mover=mover),
            build_tool=build_tool,
            runner=runner,
            name_factory=name_factory,
        )

    def test_unstorable_output_stays_in_workspace(
        self, orch, mover, container_file, settings, tmp_path, caplog
    ):
        orch.release(container_file, tmp_path / "dist", "alpha")
        mover.fail_store = True

        with caplog.at_level(logging.WARNING, logger="pit.core.orchestrator"):
            (outcome,) = orch.release(container_file, tmp_path / "dist", "alpha")

        assert outcome.error_kind == "filesystem"
        assert outcome.state == PackageState.FAILED
        (kept,) = Path(settings.workspace_dir).glob("pit-*/alpha/target")
        assert (kept / "deps").read_text() == "2"
        assert (kept / "release" / executable_name("alpha")).exists()
        assert str(kept) in caplog.text

    def test_conflicting_slot_keeps_workspace_output(
        self, orch, container_file, settings
    ):
        class SquattingTool:
            def invoke(self, package_dir, mode, quiet):
                (package_dir / "target" / "deps").write_text("mine")
                cid = orch.load(container_file).container_id
                orch.cache.slot(cid, package_dir.name).artifact_dir.mkdir(parents=True)
                return 0

        orch.build_tool = SquattingTool()
        (outcome,) = orch.build(container_file, "alpha")

        assert outcome.error_kind == "cache-conflict"
        (kept,) = Path(settings.workspace_dir).glob("pit-*/alpha/target")
        assert (kept / "deps").read_text() == "mine"
