"""
L5 Orchestration — Tool lifecycle: install, uninstall, repair, configure.

Ties the layers together::

    resolve platform → locate artifact → fetch/unpack → install → profile

Every operation returns an ``OperationReport``; every failure raises a
``ProvisionError`` subclass naming the phase that failed.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.profile import ProfileBlockSpec
from rootless.core.models.report import OperationReport
from rootless.core.models.tool import ToolDefinition
from rootless.core.services.provision.data.constants import DEFAULT_HTTP_TIMEOUT
from rootless.core.services.provision.detection.platform import resolve_platform
from rootless.core.services.provision.errors import (
    InvalidInput,
    ProvisionError,
    RepairIncomplete,
)
from rootless.core.services.provision.execution.fetch import Fetcher
from rootless.core.services.provision.execution.installer import Installer
from rootless.core.services.provision.execution.profile_mutator import (
    ProfileMutator,
    select_profiles,
)
from rootless.core.services.provision.execution.vendor import run_vendor
from rootless.core.services.provision.resolver.artifact_locator import ArtifactLocator

if TYPE_CHECKING:
    from rootless.core.config.settings import Settings

logger = logging.getLogger(__name__)

_MASK = "********"


class Operation(str, Enum):
    INSTALL = "install"
    UNINSTALL = "uninstall"
    REPAIR = "repair"
    CONFIGURE = "configure"


class LifecycleController:
    """Runs lifecycle operations for catalog tools under one home directory.

    Collaborators are injectable so tests can swap the network-facing
    parts (``locator``, ``fetcher``) and pin the ``platform``.
    """

    def __init__(
        self,
        home: Path,
        *,
        locator: ArtifactLocator | None = None,
        fetcher: Fetcher | None = None,
        installer: Installer | None = None,
        mutator: ProfileMutator | None = None,
        platform: ResolvedPlatform | None = None,
        environ: Mapping[str, str] | None = None,
        default_profiles: list[str] | None = None,
        http_timeout: int = DEFAULT_HTTP_TIMEOUT,
        build_jobs: int | None = None,
    ) -> None:
        self.home = home
        self.environ = os.environ if environ is None else environ
        self.locator = locator or ArtifactLocator(timeout=http_timeout)
        self.fetcher = fetcher or Fetcher(timeout=http_timeout)
        self.installer = installer or Installer(home, jobs=build_jobs)
        self.mutator = mutator or ProfileMutator(home, self.environ)
        self.default_profiles = default_profiles
        self._platform = platform

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> LifecycleController:
        return cls(
            settings.home_path,
            environ=environ,
            default_profiles=settings.profiles or None,
            http_timeout=settings.http_timeout,
            build_jobs=settings.build_jobs,
        )

    # ── Queries ────────────────────────────────────────────────

    @property
    def platform(self) -> ResolvedPlatform:
        """Host platform, resolved once per controller."""
        if self._platform is None:
            self._platform = resolve_platform()
            logger.info("Detected platform: %s", self._platform)
        return self._platform

    def is_installed(self, tool: ToolDefinition) -> bool:
        """Install root present, or the presence command on PATH."""
        if tool.installed_roots(self.home):
            return True
        if tool.presence_command:
            return shutil.which(tool.presence_command, path=self.environ.get("PATH")) is not None
        return False

    def profiles_for(self, tool: ToolDefinition) -> list[Path]:
        return select_profiles(tool, self.home, self.environ, self.default_profiles)

    # ── Dispatch ───────────────────────────────────────────────

    def run(
        self,
        tool: ToolDefinition,
        operation: Operation | str,
        *,
        version: str = "latest",
        reinstall: bool = False,
        values: dict[str, str] | None = None,
    ) -> OperationReport:
        op = Operation(operation)
        logger.info("%s %s", op.value, tool.name)
        if op is Operation.INSTALL:
            return self.install(tool, version=version, reinstall=reinstall)
        if op is Operation.UNINSTALL:
            return self.uninstall(tool)
        if op is Operation.REPAIR:
            return self.repair(tool, version=version)
        return self.configure(tool, values or {})

    # ── Install ────────────────────────────────────────────────

    def install(
        self,
        tool: ToolDefinition,
        *,
        version: str = "latest",
        reinstall: bool = False,
    ) -> OperationReport:
        """Install ``tool`` and write its profile block.

        With ``if_installed: skip`` an existing install is left alone
        unless ``reinstall`` is set.
        """
        report = OperationReport(tool=tool.name, operation=Operation.INSTALL.value)

        if tool.if_installed == "skip" and not reinstall and self.is_installed(tool):
            report.status = "skipped"
            report.message = f"{tool.display_name} is already installed"
            logger.info(report.message)
            return report.finish()

        platform = self.platform
        block: ProfileBlockSpec | None = tool.profile

        if tool.delivery == "vendor":
            run_vendor(tool, platform, "install")
            root = tool.render_root(self.home)
        else:
            ref = self.locator.locate(tool, platform, version)
            report.artifact = ref
            with self.fetcher.fetch(ref, label=tool.name) as payload:
                root = self.installer.install(payload, tool, platform)
            if block is not None:
                block = block.with_exports(ref.spec.extra_exports)

        report.install_root = str(root) if root is not None else None
        if block is not None and block.exports:
            report.profiles = self.mutator.apply(block, self.profiles_for(tool))

        version_note = f" {report.artifact.version}" if report.artifact else ""
        report.message = f"{tool.display_name}{version_note} installed"
        return report.finish()

    # ── Uninstall ──────────────────────────────────────────────

    def uninstall(self, tool: ToolDefinition) -> OperationReport:
        """Remove roots, links and profile lines.  Absence is success."""
        report = OperationReport(tool=tool.name, operation=Operation.UNINSTALL.value)
        was_installed = self.is_installed(tool)

        removed = self.installer.remove(tool)
        if tool.delivery == "vendor" and was_installed:
            result = run_vendor(tool, self.platform, "uninstall")
            if result is None and not removed:
                logger.warning(
                    "%s has no uninstall command for %s; remove it manually",
                    tool.display_name, self.platform.os,
                )
        report.metadata["removed_paths"] = [str(p) for p in removed]

        block = tool.removal_block()
        if block is not None:
            report.profiles = self.mutator.remove(block, self.profiles_for(tool))

        if was_installed:
            report.message = f"{tool.display_name} uninstalled"
        else:
            report.message = f"{tool.display_name} was not installed"
        return report.finish()

    # ── Repair ─────────────────────────────────────────────────

    def repair(self, tool: ToolDefinition, *, version: str = "latest") -> OperationReport:
        """Uninstall then reinstall.

        An uninstall failure propagates untouched.  An install failure
        after a successful uninstall leaves the tool absent and raises
        ``RepairIncomplete``.
        """
        removal = self.uninstall(tool)
        try:
            installed = self.install(tool, version=version, reinstall=True)
        except (ProvisionError, OSError) as exc:
            raise RepairIncomplete(
                f"{tool.display_name} was removed but reinstall failed: {exc}; "
                f"run 'install {tool.name}' to retry"
            ) from exc

        report = OperationReport(
            tool=tool.name,
            operation=Operation.REPAIR.value,
            install_root=installed.install_root,
            artifact=installed.artifact,
            profiles=installed.profiles,
            steps=[removal, installed],
            message=f"{tool.display_name} repaired",
        )
        if not removal.ok or not installed.ok:
            report.status = "partial"
        return report.finish()

    # ── Configure ──────────────────────────────────────────────

    def configure(self, tool: ToolDefinition, values: dict[str, str]) -> OperationReport:
        """Write user-supplied variables under the tool's configure marker.

        Raises:
            InvalidInput: The tool has nothing to configure, a value is
                empty, or an unknown variable was supplied.
        """
        spec = tool.configure
        if spec is None:
            raise InvalidInput(f"{tool.display_name} has nothing to configure")

        known = {v.name for v in spec.variables}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidInput(
                f"Unknown variable(s) for {tool.name}: {', '.join(unknown)} "
                f"(expected: {', '.join(sorted(known))})"
            )

        clean: dict[str, str] = {}
        for var in spec.variables:
            value = (values.get(var.name) or "").strip()
            if not value:
                raise InvalidInput(f"{var.name} cannot be empty")
            clean[var.name] = value

        report = OperationReport(tool=tool.name, operation=Operation.CONFIGURE.value)
        report.profiles = self.mutator.apply(spec.block(clean), self.profiles_for(tool))

        secret = [v.name for v in spec.variables if v.secret]
        for outcome in report.profiles.outcomes:
            outcome.lines_added = [_mask(line, secret) for line in outcome.lines_added]

        report.message = f"{tool.display_name} {spec.label} written"
        return report.finish()


def _mask(line: str, names: list[str]) -> str:
    """Hide the value of a secret export line in reports."""
    for name in names:
        if line.startswith(f"export {name}="):
            return f'export {name}="{_MASK}"'
    return line
