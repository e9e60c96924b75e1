"""
L4 Execution — Place an unpacked payload into its install root.

Replace semantics: every prior root of the tool is deleted before the
new one is written.  Delete-then-write is not atomic; a crash in
between leaves the tool absent, which a later ``install`` repairs.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.tool import ToolDefinition
from rootless.core.services.provision.data.constants import EXECUTABLE_MODE
from rootless.core.services.provision.detection.hardware import detect_cpu_count
from rootless.core.services.provision.errors import (
    PayloadLayoutMismatch,
    ProvisionError,
)
from rootless.core.services.provision.execution.build_helpers import (
    _autotools_plan,
    _validate_toolchain,
    run_build,
)
from rootless.core.services.provision.execution.fetch import UnpackedPayload

logger = logging.getLogger(__name__)


def _remove_path(path: Path) -> bool:
    """Delete a file, symlink or directory tree.  Returns whether it existed."""
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


class Installer:
    """Write and delete install roots under the user's home."""

    def __init__(self, home: Path, *, jobs: int | None = None) -> None:
        self.home = home
        self.jobs = jobs

    # ── Install ────────────────────────────────────────────────

    def install(
        self,
        payload: UnpackedPayload,
        tool: ToolDefinition,
        platform: ResolvedPlatform,
    ) -> Path:
        """Install ``payload`` for ``tool`` and return the new root."""
        root = tool.render_root(self.home, payload.ref.version)
        if root is None:
            raise ProvisionError(f"{tool.name} declares no install root", phase="install")

        try:
            for old in tool.installed_roots(self.home):
                logger.info("Removing previous install %s", old)
                _remove_path(old)
            root.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProvisionError(f"Cannot replace {root}: {e}", phase="install") from e

        layout = payload.spec.layout
        logger.info("Installing %s (%s) into %s for %s", tool.name, layout, root, platform)
        try:
            if layout == "binaries":
                self._install_binaries(payload, root)
            elif layout == "tree":
                self._install_tree(payload, root)
            else:
                self._install_autotools(payload, root)
        except BaseException as e:
            if root.exists():
                logger.warning("Removing partial install %s", root)
                shutil.rmtree(root, ignore_errors=True)
            if isinstance(e, OSError):
                raise ProvisionError(f"Cannot write {root}: {e}", phase="install") from e
            raise

        try:
            self._create_links(tool, root)
        except OSError as e:
            raise ProvisionError(f"Cannot link {tool.name}: {e}", phase="install") from e
        return root

    def _install_binaries(self, payload: UnpackedPayload, root: Path) -> None:
        bin_dir = root / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        for name in payload.spec.binaries:
            source = payload.find_binary(name)
            if source is None:
                raise PayloadLayoutMismatch(f"Binary {name!r} not found in payload")
            target = bin_dir / Path(name).name
            shutil.copy2(source, target)
            os.chmod(target, EXECUTABLE_MODE)
            logger.debug("Installed %s", target)

    def _install_tree(self, payload: UnpackedPayload, root: Path) -> None:
        shutil.copytree(payload.root, root, symlinks=True)
        for name in payload.spec.binaries:
            target = root / name
            if not target.is_file():
                raise PayloadLayoutMismatch(f"Binary {name!r} not found in {root}")
            os.chmod(target, EXECUTABLE_MODE)

    def _install_autotools(self, payload: UnpackedPayload, root: Path) -> None:
        _validate_toolchain()
        configure = payload.root / "configure"
        if not configure.is_file():
            raise PayloadLayoutMismatch(f"No configure script in {payload.root.name}/")
        os.chmod(configure, EXECUTABLE_MODE)

        jobs = self.jobs or detect_cpu_count()
        steps = _autotools_plan(
            payload.root, root, jobs=jobs, configure_args=payload.spec.configure_args,
        )
        run_build(steps)

    def _create_links(self, tool: ToolDefinition, root: Path) -> None:
        for link, path in zip(tool.links, tool.link_paths(self.home)):
            target = root / link.target
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.is_symlink() or path.exists():
                _remove_path(path)
            path.symlink_to(target)
            logger.info("Linked %s -> %s", path, target)

    # ── Remove ─────────────────────────────────────────────────

    def remove(self, tool: ToolDefinition) -> list[Path]:
        """Delete every install root and link of ``tool``.

        Returns:
            The paths that existed and were removed; empty when the tool
            was not installed.
        """
        removed: list[Path] = []
        for path in tool.link_paths(self.home) + tool.installed_roots(self.home):
            try:
                existed = _remove_path(path)
            except OSError as e:
                raise ProvisionError(f"Cannot remove {path}: {e}", phase="uninstall") from e
            if existed:
                removed.append(path)
        for path in removed:
            logger.info("Removed %s", path)
        if not removed:
            logger.info("%s: nothing installed", tool.name)
        return removed
