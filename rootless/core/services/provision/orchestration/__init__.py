"""
L5 Orchestration — lifecycle coordinators.
"""

from rootless.core.services.provision.orchestration.lifecycle import (  # noqa: F401
    LifecycleController,
    Operation,
)
