"""
Artifact models — where a tool's payload comes from and what it looks like.

``ArtifactSpec`` is static catalog data (one per delivery kind, in
preference order).  ``ArtifactReference`` is the concrete download the
locator selected for this run.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from rootless.core.models.profile import ExportLine

ArtifactKind = Literal["prebuilt-binary", "source-archive"]


class CatalogSource(BaseModel):
    """An upstream catalog that can answer "what is the latest artifact?".

    Patterns and URLs may contain ``{os}``, ``{arch}`` and ``{version}``
    placeholders, filled from the tool's platform naming.

    Types:
        json_index:     structured JSON download index (``url``).
        github_release: GitHub releases API (``repo``).
        index_page:     regex search over an HTML page (``url``).
        url_template:   fixed URL, no query (``url``).
    """

    type: Literal["json_index", "github_release", "index_page", "url_template"]
    url: str = ""
    pinned_url: str = ""     # used instead of ``url`` when a version is pinned
    repo: str = ""
    pattern: str = ""
    base_url: str = ""
    version_pattern: str = ""


class ArtifactSpec(BaseModel):
    """One delivery kind of a tool."""

    kind: ArtifactKind
    source: CatalogSource
    platforms: list[str] = Field(default_factory=list)  # "linux/x86_64"; empty = any
    layout: Literal["binaries", "tree", "autotools"] = "tree"
    binaries: list[str] = Field(default_factory=list)
    payload_glob: str = ""
    expect: str = ""
    configure_args: list[str] = Field(default_factory=list)
    extra_exports: list[ExportLine] = Field(default_factory=list)

    def supports(self, slug: str) -> bool:
        """Whether this kind is offered for the ``os/arch`` slug."""
        return not self.platforms or slug in self.platforms


class ArtifactReference(BaseModel):
    """A concrete artifact selected for download.  Not persisted."""

    url: str
    kind: ArtifactKind
    filename: str
    version: str = "latest"
    spec: ArtifactSpec
