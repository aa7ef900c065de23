"""Tests for env-driven settings and explicit storage configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from buildvault.config import VaultSettings
from buildvault.models.config import RetryConfig, StorageConfig
from buildvault.storage import create_provider
from buildvault.storage.local import LocalStorageProvider


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "BUILDVAULT_PROJECT",
        "BUILDVAULT_BACKEND",
        "BUILDVAULT_BUCKET",
        "BUILDVAULT_LOCAL_PATH",
        "BUILDVAULT_CREDENTIALS_SOURCE",
        "BUILDVAULT_RETRY_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestVaultSettings:
    def test_defaults(self):
        settings = VaultSettings()
        assert settings.project == "default"
        assert settings.backend == "local"
        assert settings.local_path == Path(".buildvault/store")
        assert settings.cache_path == Path(".buildvault/cache")

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("BUILDVAULT_PROJECT", "contracts")
        monkeypatch.setenv("BUILDVAULT_BACKEND", "s3")
        monkeypatch.setenv("BUILDVAULT_BUCKET", "build-artifacts")
        monkeypatch.setenv("BUILDVAULT_RETRY_MAX_ATTEMPTS", "7")
        settings = VaultSettings()
        assert settings.project == "contracts"
        assert settings.storage_config().bucket == "build-artifacts"
        assert settings.retry_config().max_attempts == 7

    def test_dotenv_file(self, tmp_path: Path):
        (tmp_path / ".env").write_text("BUILDVAULT_PROJECT=from-dotenv\n")
        assert VaultSettings().project == "from-dotenv"

    def test_secret_not_in_repr(self):
        settings = VaultSettings(
            credentials_source="static", access_key_id="AKIA", secret_access_key="hunter2"
        )
        assert "hunter2" not in repr(settings)
        assert "hunter2" not in repr(settings.storage_config())
        assert settings.storage_config().secret_access_key == "hunter2"


class TestStorageConfig:
    def test_static_requires_keys(self):
        with pytest.raises(ValidationError, match="static"):
            StorageConfig(credentials_source="static")

    @pytest.mark.parametrize("source", ["default", "profile:minio"])
    def test_valid_sources(self, source):
        assert StorageConfig(credentials_source=source).credentials_source == source

    @pytest.mark.parametrize("source", ["env", "profile:", "PROFILE:x"])
    def test_invalid_sources(self, source):
        with pytest.raises(ValidationError, match="credentials_source"):
            StorageConfig(credentials_source=source)

    def test_retry_bounds(self):
        with pytest.raises(ValidationError):
            RetryConfig(max_attempts=0)

    def test_local_backend_not_wrapped(self, tmp_path: Path):
        provider = create_provider(StorageConfig(local_path=tmp_path / "s"), RetryConfig())
        assert isinstance(provider, LocalStorageProvider)
        assert (tmp_path / "s" / "tmp").is_dir()
