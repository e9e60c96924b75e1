"""
Shared test fixtures and configuration.

Archives are built on the fly and served through ``file://`` URLs, so
no test touches the network.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from rootless.core.models.artifact import ArtifactReference, ArtifactSpec
from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.tool import ToolDefinition
from tests.helpers import build_tarball


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An empty fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def linux_x86() -> ResolvedPlatform:
    return ResolvedPlatform(os="linux", arch="x86_64")


@pytest.fixture
def linux_arm() -> ResolvedPlatform:
    return ResolvedPlatform(os="linux", arch="arm64")


@pytest.fixture
def tree_tarball(tmp_path: Path) -> Path:
    """A Go-style archive: one top-level dir with ``bin/demo``."""
    return build_tarball(
        tmp_path / "demo-1.2.3.linux-amd64.tar.gz",
        {
            "demo/bin/demo": "#!/bin/sh\necho demo\n",
            "demo/README": "demo\n",
        },
        executable=("demo/bin/demo",),
    )


@pytest.fixture
def make_tool():
    """Factory for ``ToolDefinition`` with sensible defaults."""

    def _make(**overrides: Any) -> ToolDefinition:
        data: dict[str, Any] = {
            "name": "demo",
            "label": "Demo",
            "install_root": "{home}/.local/demo",
            "artifacts": [{
                "kind": "prebuilt-binary",
                "source": {"type": "url_template", "url": "file:///unused.tar.gz"},
                "layout": "tree",
                "payload_glob": "demo",
                "expect": "bin/demo",
                "binaries": ["bin/demo"],
            }],
            "profiles": ["~/.bashrc", "~/.zshrc"],
            "profile": {
                "marker": "# Demo Environment (Rootless)",
                "detect": "export DEMO_HOME=",
                "exports": [
                    {"name": "DEMO_HOME", "value": "$HOME/.local/demo"},
                    {"name": "PATH", "value": "$PATH:$DEMO_HOME/bin"},
                ],
            },
        }
        data.update(overrides)
        return ToolDefinition.model_validate(data)

    return _make


@pytest.fixture
def make_ref():
    """Factory for an ``ArtifactReference`` pointing at a local file."""

    def _make(archive: Path, spec: ArtifactSpec, version: str = "1.2.3") -> ArtifactReference:
        return ArtifactReference(
            url=archive.as_uri(),
            kind=spec.kind,
            filename=archive.name,
            version=version,
            spec=spec,
        )

    return _make
