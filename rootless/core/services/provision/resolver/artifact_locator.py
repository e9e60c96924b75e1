"""
L2 Resolver — Artifact location with binary-preferred, source-fallback policy.

Iterates a tool's artifact kinds in preference order and returns the
first one the upstream catalog can satisfy.  A kind whose catalog has no
match is skipped; a catalog that cannot be reached aborts the search.
"""

from __future__ import annotations

import logging

from rootless.core.models.artifact import ArtifactReference
from rootless.core.models.platform import ResolvedPlatform
from rootless.core.models.tool import ToolDefinition
from rootless.core.services.provision.data.constants import DEFAULT_HTTP_TIMEOUT
from rootless.core.services.provision.errors import ArtifactNotFound
from rootless.core.services.provision.resolver.catalog_sources import (
    CatalogClient,
    find_artifact,
)

logger = logging.getLogger(__name__)


class ArtifactLocator:
    """Resolve ``(tool, platform, version)`` to a concrete download."""

    def __init__(
        self,
        client: CatalogClient | None = None,
        *,
        timeout: int = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self.client = client or CatalogClient(timeout=timeout)

    def locate(
        self,
        tool: ToolDefinition,
        platform: ResolvedPlatform,
        version: str = "latest",
    ) -> ArtifactReference:
        """Pick the first available artifact kind for ``platform``.

        Raises:
            ArtifactNotFound: Every kind was tried and none matched.
            NetworkError: A catalog could not be fetched or parsed.
        """
        tokens = tool.platform_tokens(platform)
        tried: list[str] = []

        for spec in tool.artifacts:
            if not spec.supports(platform.slug):
                logger.info(
                    "%s: %s not offered for %s, skipping",
                    tool.name, spec.kind, platform.slug,
                )
                tried.append(f"{spec.kind} (not offered for {platform.slug})")
                continue

            match = find_artifact(spec.source, tokens, version, self.client)
            if match is None:
                logger.warning(
                    "%s: no %s found for %s, trying next kind",
                    tool.name, spec.kind, platform.slug,
                )
                tried.append(f"{spec.kind} (no catalog match)")
                continue

            ref = ArtifactReference(
                url=match.url,
                kind=spec.kind,
                filename=match.filename,
                version=match.version,
                spec=spec,
            )
            logger.info("%s: selected %s %s (%s)", tool.name, ref.kind, ref.filename, ref.version)
            return ref

        detail = "; ".join(tried) if tried else "no artifact kinds declared"
        raise ArtifactNotFound(
            f"No artifact for {tool.name} {version} on {platform.slug}: {detail}"
        )
