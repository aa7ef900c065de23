"""Explicit storage and retry configuration passed into constructors.

These models are the only way configuration reaches the core. They are
built at the CLI edge from :class:`buildvault.config.VaultSettings` (or
directly in code and tests); nothing below this layer reads the process
environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryConfig(BaseModel):
    """Backoff policy for transient storage failures."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=4, ge=1)
    initial_wait_seconds: float = Field(default=0.5, ge=0)
    max_wait_seconds: float = Field(default=8.0, ge=0)
    jitter_seconds: float = Field(default=0.25, ge=0)


class StorageConfig(BaseModel):
    """Selects and configures a storage provider.

    ``credentials_source`` is one of ``default`` (the SDK's own chain),
    ``profile:<name>`` (a named shared-credentials profile) or ``static``
    together with ``access_key_id``/``secret_access_key``.
    """

    model_config = ConfigDict(frozen=True)

    backend: Literal["local", "s3"] = "local"

    # local
    local_path: Path = Path(".buildvault/store")

    # s3
    endpoint_url: str | None = None
    bucket: str | None = None
    region: str = "us-east-1"
    prefix: str = ""
    credentials_source: str = "default"
    access_key_id: str | None = Field(default=None, repr=False)
    secret_access_key: str | None = Field(default=None, repr=False)
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    read_timeout_seconds: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _check_backend_options(self) -> StorageConfig:
        if self.backend == "s3" and not self.bucket:
            raise ValueError("The s3 backend requires a bucket")
        if self.credentials_source == "static" and not (
            self.access_key_id and self.secret_access_key
        ):
            raise ValueError(
                "credentials_source='static' requires access_key_id and secret_access_key"
            )
        if self.credentials_source not in ("default", "static") and not (
            self.credentials_source.startswith("profile:")
            and len(self.credentials_source) > len("profile:")
        ):
            raise ValueError(
                f"Unknown credentials_source {self.credentials_source!r}; "
                "expected 'default', 'static' or 'profile:<name>'"
            )
        return self
