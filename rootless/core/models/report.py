"""
Report models — observable outcomes of a provisioning operation.

Profile mutation is not transactional across files, so every file gets
its own outcome: the caller can always tell which files were touched,
skipped, or failed.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from rootless.core.models.artifact import ArtifactReference

FileStatus = Literal[
    "updated",
    "already_configured",
    "skipped",
    "failed",
    "removed",
    "nothing_to_remove",
]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class FileOutcome(BaseModel):
    """What happened to one candidate profile file."""

    path: str
    status: FileStatus
    lines_added: list[str] = Field(default_factory=list)
    already_configured: list[str] = Field(default_factory=list)
    lines_removed: int = 0
    backup: str | None = None
    error: str | None = None

    @property
    def touched(self) -> bool:
        """Whether the file content changed."""
        return self.status in ("updated", "removed")

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class ProfileReport(BaseModel):
    """Aggregate outcome of an apply or remove pass."""

    outcomes: list[FileOutcome] = Field(default_factory=list)
    live_env_satisfied: bool = False

    def add(self, outcome: FileOutcome) -> FileOutcome:
        self.outcomes.append(outcome)
        return outcome

    def _with_status(self, *statuses: str) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status in statuses]

    @property
    def touched(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.touched]

    @property
    def updated(self) -> list[FileOutcome]:
        return self._with_status("updated")

    @property
    def removed(self) -> list[FileOutcome]:
        return self._with_status("removed")

    @property
    def already_configured(self) -> list[FileOutcome]:
        return self._with_status("already_configured")

    @property
    def skipped(self) -> list[FileOutcome]:
        return self._with_status("skipped", "nothing_to_remove")

    @property
    def failed(self) -> list[FileOutcome]:
        return self._with_status("failed")

    @property
    def ok(self) -> bool:
        return not self.failed


class OperationReport(BaseModel):
    """Result of one lifecycle operation on one tool."""

    tool: str
    operation: str
    status: Literal["ok", "skipped", "partial"] = "ok"
    message: str = ""

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)

    install_root: str | None = None
    artifact: ArtifactReference | None = None
    profiles: ProfileReport | None = None
    steps: list[OperationReport] = Field(default_factory=list)

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status != "partial"

    def finish(self) -> OperationReport:
        """Stamp the end time and downgrade to ``partial`` on profile failures."""
        self.ended_at = _now_iso()
        if self.profiles is not None and self.profiles.failed and self.status == "ok":
            self.status = "partial"
        return self

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"artifact": {"spec"}})
