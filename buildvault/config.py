"""Runtime settings — env-driven, read only at the CLI edge.

Uses pydantic-settings to read ``BUILDVAULT_*`` environment variables and
an optional ``.env`` file. The core never imports this module; the CLI
turns settings into explicit :class:`StorageConfig` / :class:`RetryConfig`
objects and hands those to constructors.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildvault.models.config import RetryConfig, StorageConfig


class VaultSettings(BaseSettings):
    """Settings with environment variable overrides.

    Examples
    --------
    Point the CLI at a MinIO bucket::

        export BUILDVAULT_BACKEND=s3
        export BUILDVAULT_BUCKET=build-artifacts
        export BUILDVAULT_ENDPOINT_URL=http://localhost:9000
        export BUILDVAULT_CREDENTIALS_SOURCE=profile:minio

    Or via .env file::

        BUILDVAULT_PROJECT=contracts
        BUILDVAULT_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDVAULT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project: str = "default"
    log_level: str = "INFO"

    # Storage
    backend: Literal["local", "s3"] = "local"
    local_path: Path = Path(".buildvault/store")
    cache_path: Path = Path(".buildvault/cache")
    endpoint_url: str | None = None
    bucket: str | None = None
    region: str = "us-east-1"
    prefix: str = ""
    credentials_source: str = "default"
    access_key_id: str | None = None
    secret_access_key: SecretStr | None = None
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 30.0

    # Retry
    retry_max_attempts: int = Field(default=4, ge=1)
    retry_initial_wait_seconds: float = 0.5
    retry_max_wait_seconds: float = 8.0

    def storage_config(self) -> StorageConfig:
        return StorageConfig(
            backend=self.backend,
            local_path=self.local_path,
            endpoint_url=self.endpoint_url,
            bucket=self.bucket,
            region=self.region,
            prefix=self.prefix,
            credentials_source=self.credentials_source,
            access_key_id=self.access_key_id,
            secret_access_key=(
                self.secret_access_key.get_secret_value()
                if self.secret_access_key
                else None
            ),
            connect_timeout_seconds=self.connect_timeout_seconds,
            read_timeout_seconds=self.read_timeout_seconds,
        )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.retry_max_attempts,
            initial_wait_seconds=self.retry_initial_wait_seconds,
            max_wait_seconds=self.retry_max_wait_seconds,
        )


def configure_logging(level: str) -> None:
    """Set up root logging once for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
