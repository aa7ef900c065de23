"""Pluggable storage backends for bundles and tag pointers."""

from __future__ import annotations

from buildvault.models.config import RetryConfig, StorageConfig
from buildvault.storage.base import StorageProvider
from buildvault.storage.local import LocalStorageProvider
from buildvault.storage.retry import RetryingStorageProvider, call_with_retry


def create_provider(
    config: StorageConfig, retry: RetryConfig | None = None
) -> StorageProvider:
    """Build the provider selected by ``config.backend``.

    Remote backends are wrapped in the retry policy; the local backend has
    no transient failure mode and is returned as is.
    """
    if config.backend == "local":
        return LocalStorageProvider(config.local_path)
    if config.backend == "s3":
        from buildvault.storage.s3 import S3StorageProvider

        return RetryingStorageProvider(S3StorageProvider(config), retry)
    raise ValueError(f"Unknown storage backend: {config.backend!r}")


__all__ = [
    "LocalStorageProvider",
    "RetryingStorageProvider",
    "StorageProvider",
    "call_with_retry",
    "create_provider",
]
