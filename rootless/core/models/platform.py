"""
Platform model — the canonical (os, arch) pair of the host.

Derived once per run from host introspection and never persisted.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class ResolvedPlatform(BaseModel):
    """Canonical host platform used to select artifacts."""

    model_config = ConfigDict(frozen=True)

    os: Literal["linux", "macos"]
    arch: Literal["x86_64", "arm64"]

    @property
    def slug(self) -> str:
        """``os/arch`` form used by artifact allow-lists."""
        return f"{self.os}/{self.arch}"

    def __str__(self) -> str:
        return self.slug
