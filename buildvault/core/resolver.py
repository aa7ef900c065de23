"""Deployment Resolver — compiled units from frozen, tag-pulled bundles only.

A directory qualifies as a frozen artifact when it carries a pull
manifest naming the tag it was pulled for, and its content still hashes
to the fingerprint recorded in that manifest. Local builds, bundles pulled
by bare fingerprint, and pulled trees edited after the fact are rejected
with :class:`FrozenArtifactError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from buildvault.core.bundle_io import load_bundle
from buildvault.core.errors import BundleFormatError, FrozenArtifactError, UnitNotFoundError
from buildvault.core.hasher import encode_bytecode
from buildvault.models.pull import PULL_MANIFEST_NAME, PullManifest, PulledBundle
from buildvault.models.units import ArtifactBundle, CompiledUnit

logger = logging.getLogger(__name__)


class ResolvedUnit(BaseModel):
    """What a deployment driver needs, plus the release it came from."""

    model_config = ConfigDict(frozen=True)

    qualified_name: str
    interface: Any
    bytecode: bytes
    project: str
    tag: str
    fingerprint: str

    @property
    def bytecode_hex(self) -> str:
        return encode_bytecode(self.bytecode)


def read_pull_manifest(path: Path) -> PullManifest:
    manifest_path = Path(path) / PULL_MANIFEST_NAME
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise FrozenArtifactError(
            f"{path} is not a pulled bundle (no {PULL_MANIFEST_NAME})"
        ) from exc
    try:
        return PullManifest.model_validate_json(raw)
    except ValidationError as exc:
        raise FrozenArtifactError(f"Unreadable pull manifest in {path}: {exc}") from exc


def load_frozen_bundle(path: Path) -> tuple[PullManifest, ArtifactBundle]:
    """Load a pulled directory and verify it has not changed since the pull."""
    manifest = read_pull_manifest(path)
    try:
        bundle = load_bundle(Path(path))
    except BundleFormatError as exc:
        raise FrozenArtifactError(
            f"Pulled bundle at {path} is malformed: {exc.message}",
            project=manifest.project,
            tag=manifest.tag,
            fingerprint=manifest.fingerprint,
        ) from exc
    if bundle.fingerprint != manifest.fingerprint:
        raise FrozenArtifactError(
            f"Pulled bundle at {path} was modified after it was pulled "
            f"(content hashes to {bundle.fingerprint})",
            project=manifest.project,
            tag=manifest.tag,
            fingerprint=manifest.fingerprint,
        )
    return manifest, bundle


class DeploymentResolver:
    """Looks up compiled units by qualified name inside one frozen bundle.

    Build it with :meth:`from_pulled`; the constructor is for callers that
    already hold a verified manifest/bundle pair.
    """

    def __init__(self, manifest: PullManifest, bundle: ArtifactBundle) -> None:
        if manifest.tag is None:
            raise FrozenArtifactError(
                "Deployment inputs must come from a bundle pulled for a tag",
                project=manifest.project,
                fingerprint=manifest.fingerprint,
            )
        if bundle.fingerprint != manifest.fingerprint:
            raise FrozenArtifactError(
                "Bundle content does not match its pull manifest",
                project=manifest.project,
                tag=manifest.tag,
                fingerprint=manifest.fingerprint,
            )
        self._manifest = manifest
        self._bundle = bundle
        self._units = bundle.as_mapping()

    @classmethod
    def from_pulled(cls, pulled: PulledBundle | Path | str) -> DeploymentResolver:
        path = pulled.path if isinstance(pulled, PulledBundle) else Path(pulled)
        manifest, bundle = load_frozen_bundle(path)
        logger.debug(
            "Resolver ready for %s@%s (%d units)",
            manifest.project,
            manifest.tag,
            len(bundle.units),
        )
        return cls(manifest, bundle)

    @property
    def project(self) -> str:
        return self._manifest.project

    @property
    def tag(self) -> str:
        return self._manifest.tag or ""

    @property
    def fingerprint(self) -> str:
        return self._manifest.fingerprint

    def qualified_names(self) -> list[str]:
        return self._bundle.qualified_names()

    def units(self) -> tuple[CompiledUnit, ...]:
        return self._bundle.units

    def resolve_unit(self, qualified_name: str) -> ResolvedUnit:
        """Return interface and bytecode for *qualified_name*.

        Raises ``UnitNotFoundError`` when the name is not in the bundle.
        """
        unit = self._units.get(qualified_name)
        if unit is None:
            raise UnitNotFoundError(
                f"Unit {qualified_name!r} not found in bundle",
                project=self.project,
                tag=self.tag,
                fingerprint=self.fingerprint,
            )
        return ResolvedUnit(
            qualified_name=unit.qualified_name,
            interface=unit.interface,
            bytecode=unit.bytecode,
            project=self.project,
            tag=self.tag,
            fingerprint=self.fingerprint,
        )


def resolve_unit(pulled: PulledBundle | Path | str, qualified_name: str) -> ResolvedUnit:
    """One-shot lookup of a unit in a pulled bundle."""
    return DeploymentResolver.from_pulled(pulled).resolve_unit(qualified_name)
