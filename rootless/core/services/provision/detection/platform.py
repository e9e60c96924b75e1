"""
L3 Detection — Host platform resolution.

Maps raw ``uname`` strings to the canonical ``(os, arch)`` pair.
Read-only; queried once per run.
"""

from __future__ import annotations

import logging
import platform as _platform

from rootless.core.models.platform import ResolvedPlatform
from rootless.core.services.provision.data.constants import ARCH_MAP, OS_MAP
from rootless.core.services.provision.errors import UnsupportedPlatform

logger = logging.getLogger(__name__)


def resolve_platform(
    system: str | None = None,
    machine: str | None = None,
) -> ResolvedPlatform:
    """Resolve the canonical platform of the host.

    Args:
        system: Raw OS name (default: ``platform.system()``).
        machine: Raw architecture (default: ``platform.machine()``).

    Raises:
        UnsupportedPlatform: If either value has no canonical mapping.
    """
    raw_os = system if system is not None else _platform.system()
    raw_arch = machine if machine is not None else _platform.machine()

    os_name = OS_MAP.get(raw_os)
    if os_name is None:
        raise UnsupportedPlatform(f"Unsupported OS: {raw_os or '(empty)'}")

    arch = ARCH_MAP.get(raw_arch, ARCH_MAP.get(raw_arch.lower()))
    if arch is None:
        raise UnsupportedPlatform(f"Unsupported architecture: {raw_arch or '(empty)'}")

    resolved = ResolvedPlatform(os=os_name, arch=arch)
    logger.debug("Resolved platform %s/%s → %s", raw_os, raw_arch, resolved.slug)
    return resolved
