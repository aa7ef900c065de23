"""buildvault: tagged, content-addressed storage for compilation artifacts.

  - Push a build's output tree under a project-scoped tag
  - Pull a tag (or fingerprint) back as a frozen, verified directory
  - Diff a local build against any tag, unit by unit
  - Resolve a compiled unit's interface and bytecode for deployment,
    only from bundles pulled for a tag
  - Local filesystem and S3-compatible backends
"""

__version__ = "0.1.0"
__description__ = "Tagged, content-addressed compilation-artifact store"

from buildvault.core.client import ArtifactStoreClient
from buildvault.core.resolver import DeploymentResolver
from buildvault.core.tag_registry import TagRegistry
from buildvault.storage import create_provider
from buildvault.cli.app import app as cli

__all__ = [
    "ArtifactStoreClient",
    "DeploymentResolver",
    "TagRegistry",
    "cli",
    "create_provider",
    "__version__",
]
