"""
Provisioning service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (data → domain → resolver → detection →
execution → orchestration)::

    from rootless.core.services.provision import LifecycleController, Operation
"""

# ── Errors ──
from rootless.core.services.provision.errors import (  # noqa: F401
    ArtifactNotFound,
    BuildFailed,
    DownloadFailed,
    InvalidInput,
    MissingDependency,
    NetworkError,
    PayloadLayoutMismatch,
    ProvisionError,
    RepairIncomplete,
    UnknownTool,
    UnpackFailed,
    UnsupportedPlatform,
    VendorInstallFailed,
)

# ── L2: Resolver ──
from rootless.core.services.provision.resolver.artifact_locator import (  # noqa: F401
    ArtifactLocator,
)

# ── L3: Detection ──
from rootless.core.services.provision.detection.platform import (  # noqa: F401
    resolve_platform,
)

# ── L4: Execution ──
from rootless.core.services.provision.execution.fetch import Fetcher  # noqa: F401
from rootless.core.services.provision.execution.installer import Installer  # noqa: F401
from rootless.core.services.provision.execution.profile_mutator import (  # noqa: F401
    ProfileMutator,
)

# ── L5: Orchestration ──
from rootless.core.services.provision.orchestration.lifecycle import (  # noqa: F401
    LifecycleController,
    Operation,
)
