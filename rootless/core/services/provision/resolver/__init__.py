"""
L2 Resolver — turns a tool definition into a concrete artifact.

Reads upstream catalogs over HTTP; never writes to the filesystem.
"""

from rootless.core.services.provision.resolver.artifact_locator import (  # noqa: F401
    ArtifactLocator,
)
from rootless.core.services.provision.resolver.catalog_sources import (  # noqa: F401
    CatalogClient,
    CatalogMatch,
    find_artifact,
)
