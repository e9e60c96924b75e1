"""
L3 Detection — CPU probes for build parallelism.

Read-only system probes: ``os.cpu_count``, ``nproc``, ``sysctl``.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess

from rootless.core.services.provision.data.constants import DEFAULT_BUILD_JOBS

logger = logging.getLogger(__name__)

_CPU_PROBES: tuple[list[str], ...] = (
    ["nproc"],
    ["sysctl", "-n", "hw.ncpu"],
)


def _probe_command(cmd: list[str]) -> int | None:
    """Run a CPU-count command and parse a positive integer from it."""
    if not shutil.which(cmd[0]):
        return None
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if r.returncode != 0:
        return None
    try:
        value = int(r.stdout.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def detect_cpu_count() -> int:
    """Number of parallel build jobs to use.

    Tries ``os.cpu_count()``, then ``nproc`` (Linux), then
    ``sysctl -n hw.ncpu`` (macOS).  Falls back to
    ``DEFAULT_BUILD_JOBS`` when every probe fails.
    """
    count = os.cpu_count()
    if count and count > 0:
        return count

    for cmd in _CPU_PROBES:
        count = _probe_command(cmd)
        if count:
            logger.debug("CPU count %d from %s", count, cmd[0])
            return count

    logger.debug("CPU probes failed; using %d jobs", DEFAULT_BUILD_JOBS)
    return DEFAULT_BUILD_JOBS
