"""buildvault data models — all Pydantic v2, all frozen (immutable)."""

from buildvault.models.config import RetryConfig, StorageConfig
from buildvault.models.diff import DiffReport, DiffStatus, UnitDiff
from buildvault.models.pull import PULL_MANIFEST_NAME, PullManifest, PulledBundle
from buildvault.models.tags import PushResult, TagPointer
from buildvault.models.units import ArtifactBundle, CompiledUnit, split_qualified_name

__all__ = [
    # units
    "ArtifactBundle",
    "CompiledUnit",
    "split_qualified_name",
    # tags
    "PushResult",
    "TagPointer",
    # diff
    "DiffReport",
    "DiffStatus",
    "UnitDiff",
    # pull
    "PULL_MANIFEST_NAME",
    "PullManifest",
    "PulledBundle",
    # config
    "RetryConfig",
    "StorageConfig",
]
