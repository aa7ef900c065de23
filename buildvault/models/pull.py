"""Pull manifest — stamps a directory as a frozen, tag-pulled bundle."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

PULL_MANIFEST_NAME = ".buildvault-pull.json"


class PullManifest(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    tag: str | None  # None when pulled directly by fingerprint
    fingerprint: str
    unit_count: int
    pulled_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class PulledBundle(BaseModel):
    """Where a pull landed and what it contains."""

    model_config = ConfigDict(frozen=True)

    path: Path
    manifest: PullManifest

    @property
    def fingerprint(self) -> str:
        return self.manifest.fingerprint
