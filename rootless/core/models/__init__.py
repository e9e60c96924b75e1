"""
Domain models — Pydantic types for the provisioning engine.

All models are re-exported here for convenient access:

    from rootless.core.models import ToolDefinition, ArtifactReference, ProfileReport
"""

from rootless.core.models.artifact import (
    ArtifactKind,
    ArtifactReference,
    ArtifactSpec,
    CatalogSource,
)
from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.profile import (
    ExportLine,
    LiveCheck,
    ProfileBlockSpec,
    RemovalSpec,
)
from rootless.core.models.report import FileOutcome, OperationReport, ProfileReport
from rootless.core.models.tool import (
    ConfigureSpec,
    ConfigureVariable,
    LinkSpec,
    PlatformNames,
    ToolDefinition,
    VendorSpec,
)

__all__ = [
    # artifact.py
    "ArtifactKind",
    "ArtifactReference",
    "ArtifactSpec",
    "CatalogSource",
    # platform.py
    "ResolvedPlatform",
    # profile.py
    "ExportLine",
    "LiveCheck",
    "ProfileBlockSpec",
    "RemovalSpec",
    # report.py
    "FileOutcome",
    "OperationReport",
    "ProfileReport",
    # tool.py
    "ConfigureSpec",
    "ConfigureVariable",
    "LinkSpec",
    "PlatformNames",
    "ToolDefinition",
    "VendorSpec",
]
