"""
L3 Detection — ``__init__.py`` re-exports all detection functions.

These functions READ system state but never WRITE.
"""

from rootless.core.services.provision.detection.environment import (  # noqa: F401
    live_environment_satisfies,
    missing_commands,
    path_contains,
)
from rootless.core.services.provision.detection.hardware import (  # noqa: F401
    detect_cpu_count,
)
from rootless.core.services.provision.detection.platform import (  # noqa: F401
    resolve_platform,
)
