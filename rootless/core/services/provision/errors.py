"""
Provisioning error taxonomy.

Every error is fatal to the operation that raised it.  The ``phase``
attribute names the stage that failed so the CLI can report it
without parsing messages.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for all provisioning failures."""

    phase: str = "provision"

    def __init__(self, message: str, *, phase: str | None = None) -> None:
        super().__init__(message)
        if phase is not None:
            self.phase = phase


class UnknownTool(ProvisionError):
    """Raised when a tool name is not in the catalog."""

    phase = "catalog"


class UnsupportedPlatform(ProvisionError):
    """Raised when the host OS or architecture has no canonical mapping."""

    phase = "platform"


class NetworkError(ProvisionError):
    """Raised when a catalog query fails in transport or cannot be parsed."""

    phase = "locate"


class ArtifactNotFound(ProvisionError):
    """Raised when every artifact kind was tried and none matched."""

    phase = "locate"


class DownloadFailed(ProvisionError):
    """Raised when the selected artifact cannot be downloaded."""

    phase = "download"


class UnpackFailed(ProvisionError):
    """Raised on a corrupt archive or an unrecognised archive format."""

    phase = "unpack"


class PayloadLayoutMismatch(ProvisionError):
    """Raised when the unpacked archive lacks the expected file."""

    phase = "unpack"


class BuildFailed(ProvisionError):
    """Raised when a configure/compile/install phase exits non-zero."""

    phase = "build"

    def __init__(self, message: str, *, phase: str = "build", stderr: str = "") -> None:
        super().__init__(message, phase=phase)
        self.stderr = stderr


class MissingDependency(ProvisionError):
    """Raised when a required external command is not on PATH."""

    phase = "preflight"

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class InvalidInput(ProvisionError):
    """Raised when a required value is empty or malformed."""

    phase = "input"


class VendorInstallFailed(ProvisionError):
    """Raised when a vendor-supplied install or uninstall command fails."""

    phase = "vendor"


class RepairIncomplete(ProvisionError):
    """Raised when repair removed the tool but could not reinstall it.

    The tool is now absent; the caller must retry ``install``.
    """

    phase = "repair"
    state = "absent"
