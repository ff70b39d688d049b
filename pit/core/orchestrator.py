"""Orchestrator — the build/check/run/release engine.

Wires the parser, identity hash, artifact cache, workspaces and the external
collaborators together. For every package a command touches, the
PackageStateMachine walks::

    UNCHECKED -> CACHED                  (debug build, identity unchanged)
    UNCHECKED -> BUILDING -> BUILT
    UNCHECKED -> BUILDING -> FAILED

Each package ends up as one :class:`PackageOutcome`; a failure in one
package never stops its siblings.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pit.config import PitSettings
from pit.core.artifact_cache import ArtifactCache, executable_name
from pit.core.build_tool import (
    BuildTool,
    CargoBuildTool,
    ExecutableRunner,
    SubprocessRunner,
)
from pit.core.errors import (
    BuildToolFailure,
    ExecutionFailure,
    FilesystemError,
    PackageNotFoundError,
    ParseError,
    PitError,
)
from pit.core.hasher import container_id, identity_hash
from pit.core.parser import Container, load_container
from pit.core.scaffold import extract_package
from pit.core.state_machine import PackageStateMachine
from pit.core.workspace import Workspace, random_suffix
from pit.models.cache import SlotStatus
from pit.models.outcomes import BuildMode, PackageOutcome, PackageState
from pit.models.package import Package

logger = logging.getLogger(__name__)

# Called as step(action, package) with action one of "fresh", "debug",
# "release", "check" or "run", right before that happens to the package, so a
# front end can print a header.
StepHook = Callable[[str, Package], None]


def _no_step(action: str, package: Package) -> None:
    return None


class Orchestrator:
    """Central coordinator for one cache root.

    Parameters
    ----------
    settings:
        Runtime settings. Uses defaults (and PIT_* env vars) if not provided.
    cache:
        Artifact cache. Built from ``settings.cache_root`` if not provided.
    build_tool:
        External build tool. Defaults to :class:`CargoBuildTool`.
    runner:
        Runs produced executables. Defaults to :class:`SubprocessRunner`.
    name_factory:
        Random suffix source for workspace directories.
    on_step:
        Optional hook called before each package action.
    """

    def __init__(
        self,
        settings: PitSettings | None = None,
        *,
        cache: ArtifactCache | None = None,
        build_tool: BuildTool | None = None,
        runner: ExecutableRunner | None = None,
        name_factory: Callable[[], str] = random_suffix,
        on_step: StepHook | None = None,
    ) -> None:
        self.settings = settings or PitSettings()
        self.cache = cache or ArtifactCache(self.settings.cache_root)
        self.build_tool = build_tool or CargoBuildTool(self.settings.build_tool)
        self.runner = runner or SubprocessRunner()
        self.state_machine = PackageStateMachine()
        self._name_factory = name_factory
        self._on_step = on_step or _no_step

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, file_path: Path) -> Container:
        """Read and parse a container file with the configured tokens."""
        return load_container(
            Path(file_path),
            separator=self.settings.separator,
            prefix=self.settings.manifest_prefix,
        )

    def select(self, container: Container, package_name: str | None) -> list[Package]:
        """All packages, or just the named one.

        Raises
        ------
        PackageNotFoundError
            If ``package_name`` is given but absent.
        """
        if package_name is None:
            return list(container.packages)
        package = container.find(package_name)
        if package is None:
            raise PackageNotFoundError(package_name, str(container.path))
        return [package]

    def list_packages(self, file_path: Path) -> list[str]:
        """Package names in file order. Malformed segments are fatal here."""
        container = self.load(file_path)
        if container.errors:
            raise container.errors[0]
        return container.names

    def get_states(self) -> dict[str, PackageState]:
        """States reached by the packages of the most recent command."""
        return self.state_machine.get_all_states()

    # ------------------------------------------------------------------
    # Core build path
    # ------------------------------------------------------------------

    def _invoke_in_workspace(
        self, container_id: str, package: Package, mode: BuildMode, quiet: bool
    ) -> int:
        """Materialize, restore, invoke the tool, store back, clean up.

        The artifact directory goes back into the slot whatever the tool's
        exit status, so partial dependency builds survive a failed build.
        If it cannot be stored back, the workspace is left on disk since it
        then holds the only copy of the artifacts.
        """
        workspace = Workspace.create(
            package, self.settings.workspace_dir, self._name_factory
        )
        try:
            self.cache.restore(container_id, package.name, workspace.target_dir)
        except PitError:
            workspace.remove()
            raise

        try:
            return self.build_tool.invoke(workspace.package_dir, mode, quiet)
        finally:
            try:
                self.cache.store(container_id, package.name, workspace.target_dir)
            except PitError:
                logger.warning(
                    "Build output of %s could not be stored back; kept at %s",
                    package.name,
                    workspace.target_dir,
                )
                raise
            workspace.remove()

    def ensure_built(
        self,
        container_id: str,
        package: Package,
        mode: BuildMode = BuildMode.DEBUG,
        *,
        quiet: bool = False,
    ) -> PackageState:
        """Drive one package through the state machine for ``mode``.

        Debug builds are skipped when the stored identity matches. Release
        builds always run. Check runs never read or write the identity.

        Raises
        ------
        BuildToolFailure
            If the tool exits non-zero. The identity is invalidated first
            (except in check mode).
        """
        name = package.name
        self.state_machine.reset(name)

        new_hash = identity_hash(package)
        if mode == BuildMode.DEBUG and self.cache.is_up_to_date(container_id, name, new_hash):
            logger.info("%s is up to date (%s)", name, new_hash[:12])
            self._on_step("fresh", package)
            return self.state_machine.transition(name, PackageState.CACHED)

        self.state_machine.transition(name, PackageState.BUILDING)
        self._on_step(mode.value, package)
        try:
            returncode = self._invoke_in_workspace(container_id, package, mode, quiet)
            if returncode != 0:
                raise BuildToolFailure(name, mode.value, returncode)
            if mode == BuildMode.DEBUG:
                self.cache.record_hash(container_id, name, new_hash)
        except Exception as error:
            self.state_machine.transition(name, PackageState.FAILED)
            if mode != BuildMode.CHECK:
                try:
                    self.cache.invalidate(container_id, name)
                except FilesystemError as exc:
                    raise FilesystemError(f"{exc} (after: {error})") from error
            raise

        return self.state_machine.transition(name, PackageState.BUILT)

    # ------------------------------------------------------------------
    # Per-package commands
    # ------------------------------------------------------------------

    def _guard(
        self,
        command: str,
        package: Package,
        action: Callable[[], PackageOutcome],
    ) -> PackageOutcome:
        """Run ``action``; turn any package-level error into an outcome."""
        try:
            return action()
        except PitError as exc:
            logger.debug("%s %s failed: %s", command, package.name, exc)
            return self._outcome(command, package.name, error=exc)
        except OSError as exc:
            error = FilesystemError(str(exc))
            return self._outcome(command, package.name, error=error)

    def _outcome(
        self,
        command: str,
        package_name: str,
        *,
        error: PitError | None = None,
        **fields: object,
    ) -> PackageOutcome:
        state = self.state_machine.get_state(package_name)
        if error is not None:
            fields.setdefault("error_kind", error.kind)
            fields.setdefault("message", str(error))
            if isinstance(error, ExecutionFailure):
                fields.setdefault("executed", True)
                fields.setdefault("exit_code", error.returncode)
            elif isinstance(error, BuildToolFailure):
                fields.setdefault("exit_code", error.returncode)
        return PackageOutcome(package_name=package_name, command=command, state=state, **fields)

    def build_package(
        self, container_id: str, package: Package, *, quiet: bool = False
    ) -> PackageOutcome:
        """Debug-build one package unless its identity is unchanged."""

        def action() -> PackageOutcome:
            self.ensure_built(container_id, package, BuildMode.DEBUG, quiet=quiet)
            return self._outcome(
                "build",
                package.name,
                executable=self.cache.executable_path(container_id, package.name, BuildMode.DEBUG),
            )

        return self._guard("build", package, action)

    def check_package(
        self, container_id: str, package: Package, *, quiet: bool = False
    ) -> PackageOutcome:
        """Run the tool's lighter verification step for one package."""

        def action() -> PackageOutcome:
            self.ensure_built(container_id, package, BuildMode.CHECK, quiet=quiet)
            return self._outcome("check", package.name)

        return self._guard("check", package, action)

    def run_package(
        self, container_id: str, package: Package, *, quiet: bool = False
    ) -> PackageOutcome:
        """Build (or reuse) the debug binary, then execute it."""

        def action() -> PackageOutcome:
            self.ensure_built(container_id, package, BuildMode.DEBUG, quiet=quiet)
            executable = self.cache.executable_path(container_id, package.name, BuildMode.DEBUG)
            self._on_step("run", package)
            returncode = self.runner.run(executable)
            if returncode != 0:
                raise ExecutionFailure(package.name, returncode)
            return self._outcome(
                "run", package.name, executed=True, exit_code=returncode, executable=executable
            )

        return self._guard("run", package, action)

    def release_package(
        self,
        container_id: str,
        package: Package,
        out_dir: Path,
        *,
        quiet: bool = False,
    ) -> PackageOutcome:
        """Release-build one package and copy its binary into ``out_dir``."""

        def action() -> PackageOutcome:
            self.ensure_built(container_id, package, BuildMode.RELEASE, quiet=quiet)
            executable = self.cache.executable_path(container_id, package.name, BuildMode.RELEASE)
            destination = Path(out_dir) / executable_name(package.name)
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(executable, destination)
            except OSError as exc:
                raise FilesystemError(
                    f"cannot copy {executable} to {destination}: {exc}"
                ) from exc
            logger.info("Released %s to %s", package.name, destination)
            return self._outcome(
                "release", package.name, executable=executable, distributed_to=destination
            )

        return self._guard("release", package, action)

    # ------------------------------------------------------------------
    # Container-level commands
    # ------------------------------------------------------------------

    def _each(
        self,
        file_path: Path,
        command: str,
        package_name: str | None,
        action: Callable[[str, Package], PackageOutcome],
        *,
        jobs: int = 1,
    ) -> list[PackageOutcome]:
        container = self.load(file_path)
        packages = self.select(container, package_name)
        self.state_machine = PackageStateMachine()

        if jobs > 1 and len(packages) > 1:
            with ThreadPoolExecutor(max_workers=jobs) as pool:
                outcomes = list(
                    pool.map(lambda p: action(container.container_id, p), packages)
                )
        else:
            outcomes = [action(container.container_id, p) for p in packages]

        if package_name is None:
            outcomes.extend(self._parse_failures(command, container.errors))
        return outcomes

    @staticmethod
    def _parse_failures(command: str, errors: list[ParseError]) -> list[PackageOutcome]:
        return [
            PackageOutcome(
                package_name=f"<segment {error.segment_index}>",
                command=command,
                state=PackageState.FAILED,
                error_kind=error.kind,
                message=str(error),
            )
            for error in errors
        ]

    def _quiet(self, quiet: bool | None) -> bool:
        return self.settings.quiet if quiet is None else quiet

    def _jobs(self, jobs: int | None) -> int:
        return self.settings.jobs if jobs is None else jobs

    def build(
        self,
        file_path: Path,
        package_name: str | None = None,
        *,
        quiet: bool | None = None,
        jobs: int | None = None,
    ) -> list[PackageOutcome]:
        """Debug-build every package (or one) in a container file."""
        quiet = self._quiet(quiet)
        return self._each(
            file_path,
            "build",
            package_name,
            lambda cid, p: self.build_package(cid, p, quiet=quiet),
            jobs=self._jobs(jobs),
        )

    def check(
        self,
        file_path: Path,
        package_name: str | None = None,
        *,
        quiet: bool | None = None,
        jobs: int | None = None,
    ) -> list[PackageOutcome]:
        """Check every package (or one) in a container file."""
        quiet = self._quiet(quiet)
        return self._each(
            file_path,
            "check",
            package_name,
            lambda cid, p: self.check_package(cid, p, quiet=quiet),
            jobs=self._jobs(jobs),
        )

    def run(
        self,
        file_path: Path,
        package_name: str | None = None,
        *,
        quiet: bool | None = None,
    ) -> list[PackageOutcome]:
        """Run every package (or one) in file order, one at a time."""
        quiet = self._quiet(quiet)
        return self._each(
            file_path,
            "run",
            package_name,
            lambda cid, p: self.run_package(cid, p, quiet=quiet),
        )

    def release(
        self,
        file_path: Path,
        out_dir: Path,
        package_name: str | None = None,
        *,
        quiet: bool | None = None,
        jobs: int | None = None,
    ) -> list[PackageOutcome]:
        """Release-build every package (or one) and copy binaries to ``out_dir``."""
        quiet = self._quiet(quiet)
        return self._each(
            file_path,
            "release",
            package_name,
            lambda cid, p: self.release_package(cid, p, out_dir, quiet=quiet),
            jobs=self._jobs(jobs),
        )

    # ------------------------------------------------------------------
    # Cache inspection and maintenance
    # ------------------------------------------------------------------

    def cache_status(self, file_path: Path) -> list[SlotStatus]:
        """Each package's slot next to its current identity, in file order."""
        container = self.load(file_path)
        return [
            SlotStatus(
                slot=self.cache.slot(container.container_id, package.name),
                current_identity=identity_hash(package),
            )
            for package in container.packages
        ]

    def clean(self, file_path: Path | None = None) -> int:
        """Empty the whole cache root, or only one container's slots."""
        if file_path is None:
            return self.cache.clean()
        return self.cache.clean(container_id(Path(file_path)))

    def extract(self, file_path: Path, package_name: str, out_dir: Path) -> Path:
        """Write one package out as a standalone project directory."""
        container = self.load(file_path)
        (package,) = self.select(container, package_name)
        return extract_package(package, out_dir)
