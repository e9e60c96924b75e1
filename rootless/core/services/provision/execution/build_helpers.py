"""
L4 Execution — Build-from-source helpers.

Validate the toolchain, plan an autotools build into a user-owned
prefix, and run it phase by phase.  A failing phase raises
``BuildFailed`` naming the phase; no partial tree is left behind by
the caller.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from rootless.core.services.provision.data.constants import BUILD_TIMEOUTS
from rootless.core.services.provision.errors import BuildFailed, MissingDependency
from rootless.core.services.provision.execution.subprocess_runner import _run_subprocess

logger = logging.getLogger(__name__)

# Any one of these satisfies the C compiler requirement.
_C_COMPILERS = ("cc", "gcc", "clang")


def _validate_toolchain(
    requires_toolchain: list[str] | None = None,
) -> dict:
    """Validate that ``make`` and a C compiler are on PATH.

    Args:
        requires_toolchain: Additional tool names the build needs.

    Returns:
        ``{"ok": True, "available": [...]}``.

    Raises:
        MissingDependency: Listing every missing tool.
    """
    available: list[str] = []
    missing: list[str] = []

    for tool in ["make", *(requires_toolchain or [])]:
        if shutil.which(tool):
            available.append(tool)
        else:
            missing.append(tool)

    compiler = next((c for c in _C_COMPILERS if shutil.which(c)), None)
    if compiler:
        available.append(compiler)
    else:
        missing.append("/".join(_C_COMPILERS))

    if missing:
        raise MissingDependency(
            f"Source build needs: {', '.join(missing)}", missing=missing,
        )
    return {"ok": True, "available": available}


def _autotools_plan(
    source_dir: Path,
    prefix: Path,
    *,
    jobs: int,
    configure_args: list[str] | None = None,
) -> list[dict]:
    """Generate plan steps for an autotools (./configure && make) build.

    Produces three steps:
        1. ``./configure --prefix=<prefix>`` with optional extra args
        2. ``make -j<jobs>``
        3. ``make install``

    Returns:
        Ordered list of step dicts ready for ``run_build()``.
    """
    cwd = str(source_dir)
    return [
        {
            "phase": "configure",
            "label": "Configure (autotools)",
            "command": ["./configure", f"--prefix={prefix}", *(configure_args or [])],
            "cwd": cwd,
            "timeout": BUILD_TIMEOUTS["configure"],
        },
        {
            "phase": "compile",
            "label": f"Compile ({jobs} jobs)",
            "command": ["make", f"-j{jobs}"],
            "cwd": cwd,
            "timeout": BUILD_TIMEOUTS["compile"],
        },
        {
            "phase": "install",
            "label": "Install (make install)",
            "command": ["make", "install"],
            "cwd": cwd,
            "timeout": BUILD_TIMEOUTS["install"],
        },
    ]


def run_build(steps: list[dict]) -> list[dict]:
    """Run build steps in order, stopping at the first failure.

    Returns:
        One result dict per completed step.

    Raises:
        BuildFailed: ``phase`` is the failing step's phase.
    """
    results: list[dict] = []
    for step in steps:
        logger.info("%s: %s", step["label"], " ".join(step["command"]))
        result = _run_subprocess(
            step["command"], timeout=step["timeout"], cwd=step["cwd"],
        )
        if not result["ok"]:
            stderr = result.get("stderr", "")
            logger.error("%s failed: %s", step["label"], result["error"])
            if stderr:
                logger.debug("stderr:\n%s", stderr)
            raise BuildFailed(
                f"{step['phase']} failed: {result['error']}",
                phase=step["phase"],
                stderr=stderr,
            )
        results.append({"phase": step["phase"], **result})
    return results
