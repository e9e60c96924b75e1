"""
L4 Execution — functions that WRITE: download, unpack, install, edit profiles.

Every subprocess goes through ``subprocess_runner._run_subprocess``.
"""

from rootless.core.services.provision.execution.backup import backup_file  # noqa: F401
from rootless.core.services.provision.execution.build_helpers import (  # noqa: F401
    _autotools_plan,
    _validate_toolchain,
    run_build,
)
from rootless.core.services.provision.execution.fetch import (  # noqa: F401
    Fetcher,
    UnpackedPayload,
    download,
    locate_payload,
    unpack,
)
from rootless.core.services.provision.execution.installer import Installer  # noqa: F401
from rootless.core.services.provision.execution.profile_mutator import (  # noqa: F401
    ProfileMutator,
    expand_profile,
    select_profiles,
)
from rootless.core.services.provision.execution.subprocess_runner import (  # noqa: F401
    _run_subprocess,
)
from rootless.core.services.provision.execution.vendor import run_vendor  # noqa: F401
from rootless.core.services.provision.execution.workspace import Workspace  # noqa: F401
