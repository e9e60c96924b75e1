"""
Tool model — the static descriptor of one provisioned tool.

Tools are loaded from ``core/data/tools/<name>.yml`` and are immutable
once loaded.  A tool is either delivered as a downloadable artifact
(binary or source) or through a vendor-supplied installer that performs
its own side effects.
"""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from rootless.core.models.artifact import ArtifactSpec
from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.profile import ExportLine, ProfileBlockSpec


class PlatformNames(BaseModel):
    """Per-tool spelling of the canonical platform pair.

    e.g. SQLite publishes ``osx``/``x64`` where we say ``macos``/``x86_64``.
    """

    os: dict[str, str] = Field(default_factory=dict)
    arch: dict[str, str] = Field(default_factory=dict)


class VendorSpec(BaseModel):
    """An opaque upstream installer, keyed by canonical OS."""

    requires: list[str] = Field(default_factory=list)
    install: dict[str, list[str]] = Field(default_factory=dict)
    uninstall: dict[str, list[str]] = Field(default_factory=dict)
    timeout: int = 900


class LinkSpec(BaseModel):
    """A symlink from a shared bin directory into the install root."""

    path: str      # template, e.g. "{home}/.local/bin/code-server"
    target: str    # relative to the install root, e.g. "bin/code-server"


class ConfigureVariable(BaseModel):
    """A variable the user supplies through the configure operation."""

    name: str
    prompt: str = ""
    secret: bool = False


class ConfigureSpec(BaseModel):
    """Extra user-supplied exports written under their own marker."""

    label: str = "configure"
    marker: str
    variables: list[ConfigureVariable] = Field(default_factory=list)

    def block(self, values: dict[str, str]) -> ProfileBlockSpec:
        """Build a per-variable block spec from the supplied values."""
        exports = [
            ExportLine(name=v.name, value=values[v.name], quote=True)
            for v in self.variables
        ]
        return ProfileBlockSpec(marker=self.marker, exports=exports)


class ToolDefinition(BaseModel):
    """Static descriptor of a provisioned tool."""

    model_config = ConfigDict(frozen=True)

    # ── Identity ─────────────────────────────────────────────────
    name: str
    label: str = ""
    description: str = ""

    # ── Placement ────────────────────────────────────────────────
    install_root: str = ""         # "{home}/.local/go"; may contain {version}
    presence_command: str = ""     # vendor tools without a root: probe PATH
    links: list[LinkSpec] = Field(default_factory=list)
    if_installed: Literal["replace", "skip"] = "replace"

    # ── Delivery ─────────────────────────────────────────────────
    delivery: Literal["artifact", "vendor"] = "artifact"
    artifacts: list[ArtifactSpec] = Field(default_factory=list)  # preference order
    vendor: VendorSpec | None = None
    platform_names: PlatformNames = Field(default_factory=PlatformNames)

    # ── Shell profiles ───────────────────────────────────────────
    profiles: list[str] = Field(default_factory=list)
    profile_selection: Literal["existing", "login_shell"] = "existing"
    profile: ProfileBlockSpec | None = None
    configure: ConfigureSpec | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def platform_tokens(self, platform: ResolvedPlatform) -> dict[str, str]:
        """Translate the canonical pair into this tool's naming."""
        return {
            "os": self.platform_names.os.get(platform.os, platform.os),
            "arch": self.platform_names.arch.get(platform.arch, platform.arch),
        }

    def render_root(self, home: Path, version: str = "latest") -> Path | None:
        """Concrete install root for ``version``, or None for root-less tools."""
        if not self.install_root:
            return None
        rendered = self.install_root.replace("{home}", str(home))
        rendered = rendered.replace("{version}", version)
        return Path(rendered)

    def installed_roots(self, home: Path) -> list[Path]:
        """Every existing install root; versioned roots are globbed."""
        if not self.install_root:
            return []
        if "{version}" not in self.install_root:
            root = self.render_root(home)
            return [root] if root is not None and root.exists() else []
        pattern = self.install_root.replace("{home}", glob.escape(str(home)))
        pattern = pattern.replace("{version}", "*")
        return sorted(Path(p) for p in glob.glob(pattern) if Path(p).is_dir())

    def link_paths(self, home: Path) -> list[Path]:
        return [Path(link.path.replace("{home}", str(home))) for link in self.links]

    def removal_block(self) -> ProfileBlockSpec | None:
        """Block spec covering the exports of every delivery kind.

        Range removal must also recognise kind-specific lines (e.g. the
        library paths only written after a source build).
        """
        if self.profile is None:
            return None
        extra: list[ExportLine] = []
        for artifact in self.artifacts:
            extra.extend(artifact.extra_exports)
        return self.profile.with_exports(extra)
