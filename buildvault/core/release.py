"""Release publishing: push a versioned tag, then pull it back frozen.

Only ``TagExistsError`` means "this release was already published".
Any other push failure (storage outage, bad credentials, malformed bundle)
aborts the release.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from buildvault.core.client import ArtifactStoreClient
from buildvault.core.errors import TagExistsError
from buildvault.models.pull import PulledBundle

logger = logging.getLogger(__name__)


class ReleaseOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    tag: str
    fingerprint: str
    newly_published: bool
    uploaded: bool
    pulled: PulledBundle


def release_tag(version: str) -> str:
    """``1.2.3`` -> ``v1.2.3``; an existing ``v`` prefix is kept as is."""
    version = version.strip()
    if not version:
        raise ValueError("Release version must not be empty")
    return version if version.startswith("v") else f"v{version}"


def read_package_version(package_json: Path) -> str:
    """Read the ``version`` field of a ``package.json``."""
    try:
        data = json.loads(Path(package_json).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read version from {package_json}: {exc}") from exc
    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version:
        raise ValueError(f"{package_json} has no 'version' field")
    return version


def publish_release(
    client: ArtifactStoreClient,
    project: str,
    version: str,
    bundle_path: Path,
    *,
    destination: Path | None = None,
) -> ReleaseOutcome:
    """Publish ``v<version>`` and pull it back as the frozen release input."""
    tag = release_tag(version)
    newly_published = True
    uploaded = False
    try:
        result = client.push(project, tag, bundle_path)
        uploaded = result.uploaded
        logger.info("Published release %s/%s", project, tag)
    except TagExistsError:
        newly_published = False
        logger.info("Release %s/%s already published; reusing it", project, tag)

    pulled = client.pull(project, tag, destination)
    return ReleaseOutcome(
        project=project,
        tag=tag,
        fingerprint=pulled.fingerprint,
        newly_published=newly_published,
        uploaded=uploaded,
        pulled=pulled,
    )
