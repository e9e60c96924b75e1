"""
L4 Execution — Vendor-supplied installers.

Some tools ship their own install script with side effects we do not
control (``curl … | bash``).  We only check its prerequisites, run it
for the host OS and report its exit status.
"""

from __future__ import annotations

import logging

from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.tool import ToolDefinition
from rootless.core.services.provision.detection.environment import missing_commands
from rootless.core.services.provision.errors import (
    MissingDependency,
    ProvisionError,
    UnsupportedPlatform,
    VendorInstallFailed,
)
from rootless.core.services.provision.execution.subprocess_runner import _run_subprocess

logger = logging.getLogger(__name__)


def run_vendor(
    tool: ToolDefinition,
    platform: ResolvedPlatform,
    action: str = "install",
    *,
    env_overrides: dict[str, str] | None = None,
) -> dict | None:
    """Run the vendor ``install`` or ``uninstall`` command for the host OS.

    Returns:
        The subprocess result dict, or None when no uninstall command is
        declared (uninstall is then a no-op).

    Raises:
        UnsupportedPlatform: No install command for this OS.
        MissingDependency: A required command is not on PATH.
        VendorInstallFailed: The command exited non-zero.
    """
    vendor = tool.vendor
    if vendor is None:
        raise ProvisionError(f"{tool.name} has no vendor installer", phase="vendor")
    commands = vendor.install if action == "install" else vendor.uninstall
    cmd = commands.get(platform.os)
    if not cmd:
        if action == "install":
            raise UnsupportedPlatform(
                f"{tool.name} has no vendor installer for {platform.os}"
            )
        logger.debug("%s: no vendor %s command for %s", tool.name, action, platform.os)
        return None

    missing = missing_commands(list(dict.fromkeys([cmd[0], *vendor.requires])))
    if missing:
        raise MissingDependency(
            f"{tool.name} {action} needs: {', '.join(missing)}", missing=missing,
        )

    logger.info("Running %s vendor %s: %s", tool.name, action, " ".join(cmd))
    result = _run_subprocess(cmd, timeout=vendor.timeout, env_overrides=env_overrides)
    if not result["ok"]:
        stderr = result.get("stderr", "")
        if stderr:
            logger.debug("stderr:\n%s", stderr)
        raise VendorInstallFailed(
            f"{tool.name} vendor {action} failed: {result['error']}"
            + (f"\n{stderr.strip()}" if stderr.strip() else ""),
        )
    return result
