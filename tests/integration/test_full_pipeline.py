"""End-to-end integration tests — real subprocesses through the whole pipeline.

A tiny shell script stands in for cargo: it is invoked by CargoBuildTool
exactly as cargo would be, writes an executable shell script into
``target/<mode>/`` and fails when the source contains ``compile_error``.
The produced executables are then run by SubprocessRunner.
"""

from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from pit.config import PitSettings
from pit.core.orchestrator import Orchestrator
from pit.models.outcomes import PackageState

pytestmark = pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX shell required")

FAKE_CARGO = """\
#!/bin/sh
name=$(basename "$PWD")
echo "$name $*" >> "{log}"
if [ "$1" = "check" ]; then
    grep -q compile_error src/main.rs && exit 1
    exit 0
fi
mode=debug
[ "$2" = "--release" ] && mode=release
mkdir -p "target/$mode"
count=$(cat target/deps 2>/dev/null || echo 0)
echo $((count + 1)) > target/deps
grep -q compile_error src/main.rs && exit 1
printf '#!/bin/sh\\necho "hello from %s"\\nexit %s\\n' "$name" "$(grep -c panic src/main.rs)" > "target/$mode/$name"
chmod +x "target/$mode/$name"
"""


def _container(*packages: tuple[str, str]) -> str:
    segments = [
        f'//# [package]\n//# name = "{name}"\n//# version = "0.1.0"\n\n{source}\n'
        for name, source in packages
    ]
    return "\n//# ---\n\n".join(segments)


class TestFullPipeline:
    """Build, run, rebuild and release through the real subprocess path."""

    @pytest.fixture
    def log(self, tmp_path: Path) -> Path:
        return tmp_path / "cargo.log"

    @pytest.fixture
    def orch(self, tmp_path: Path, log: Path) -> Orchestrator:
        script = tmp_path / "fake-cargo"
        script.write_text(FAKE_CARGO.format(log=log))
        script.chmod(script.stat().st_mode | stat.S_IEXEC)
        settings = PitSettings(
            cache_root=tmp_path / "cache",
            workspace_root=tmp_path / "work",
            build_tool=str(script),
        )
        return Orchestrator(settings)

    @pytest.fixture
    def snippets(self, tmp_path: Path) -> Path:
        path = tmp_path / "snippets.rs"
        path.write_text(
            _container(
                ("alpha", 'fn main() { println!("a"); }'),
                ("beta", 'fn main() { println!("b"); }'),
            )
        )
        return path

    def _calls(self, log: Path) -> list[str]:
        return log.read_text().splitlines() if log.exists() else []

    def test_run_builds_then_executes(self, orch, snippets, log, capfd):
        outcomes = orch.run(snippets)

        assert all(o.ok for o in outcomes)
        out = capfd.readouterr().out
        assert out.index("hello from alpha") < out.index("hello from beta")
        assert self._calls(log) == ["alpha build", "beta build"]

    def test_second_run_uses_cache(self, orch, snippets, log, capfd):
        orch.run(snippets)
        before = len(self._calls(log))
        outcomes = orch.run(snippets)

        assert [o.state for o in outcomes] == [PackageState.CACHED, PackageState.CACHED]
        assert len(self._calls(log)) == before
        assert capfd.readouterr().out.count("hello from alpha") == 2

    def test_edit_rebuilds_only_edited_package(self, orch, snippets, log):
        orch.build(snippets)
        snippets.write_text(snippets.read_text().replace('println!("a")', 'println!("A")'))

        outcomes = orch.build(snippets)

        assert [o.state for o in outcomes] == [PackageState.BUILT, PackageState.CACHED]
        assert [line.split()[0] for line in self._calls(log)] == ["alpha", "beta", "alpha"]

    def test_dependency_artifacts_survive_between_builds(self, orch, snippets):
        orch.build(snippets)
        snippets.write_text(snippets.read_text().replace('println!("a")', 'println!("A")'))
        orch.build(snippets)
        cid = orch.load(snippets).container_id
        assert (orch.cache.slot(cid, "alpha").artifact_dir / "deps").read_text().strip() == "2"

    def test_compile_error_then_fix(self, orch, tmp_path, log):
        path = tmp_path / "broken.rs"
        path.write_text(_container(("gamma", "fn main() { compile_error }")))

        failed = orch.build(path)
        assert failed[0].error_kind == "build"
        assert failed[0].exit_code == 1

        path.write_text(_container(("gamma", "fn main() {}")))
        fixed = orch.build(path)
        assert fixed[0].state == PackageState.BUILT
        assert len(self._calls(log)) == 2

    def test_program_failure_is_execution_failure(self, orch, tmp_path):
        path = tmp_path / "crash.rs"
        path.write_text(_container(("delta", 'fn main() { panic!("boom"); }')))

        (outcome,) = orch.run(path)

        assert outcome.error_kind == "execution"
        assert outcome.executed is True
        assert outcome.exit_code == 1

    def test_release_copies_binaries(self, orch, snippets, tmp_path, log):
        orch.build(snippets)
        out_dir = tmp_path / "dist"

        outcomes = orch.release(snippets, out_dir)

        assert all(o.ok for o in outcomes)
        assert (out_dir / "alpha").exists()
        assert (out_dir / "beta").exists()
        assert sum("--release" in line for line in self._calls(log)) == 2

    def test_check_never_produces_binaries(self, orch, snippets, log):
        outcomes = orch.check(snippets)
        assert all(o.ok for o in outcomes)
        assert [line.split()[1] for line in self._calls(log)] == ["check", "check"]

    def test_workspaces_cleaned_up(self, orch, snippets, tmp_path):
        orch.build(snippets)
        orch.release(snippets, tmp_path / "dist")
        assert list((tmp_path / "work").iterdir()) == []

    def test_missing_build_tool_reported_per_package(self, tmp_path, snippets):
        settings = PitSettings(
            cache_root=tmp_path / "cache",
            workspace_root=tmp_path / "work",
            build_tool=str(tmp_path / "no-such-cargo"),
        )
        outcomes = Orchestrator(settings).build(snippets)
        assert [o.error_kind for o in outcomes] == ["filesystem", "filesystem"]
