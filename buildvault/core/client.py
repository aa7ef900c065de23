"""Artifact Store Client — push, pull and diff tagged bundles.

Push::

    local dir -> ArtifactBundle -> fingerprint
              -> upload payload (skipped if the fingerprint is stored)
              -> register (project, tag) -> fingerprint

Pull::

    tag or fingerprint -> fingerprint -> payload -> verify -> stage dir
              -> swap into destination (full replace) + pull manifest

Every failure is a :class:`~buildvault.core.errors.BuildVaultError`
carrying whatever project/tag/fingerprint context was known when it
surfaced. Nothing is swallowed here.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import quote

from buildvault.core.bundle_io import deserialize_bundle, load_bundle, serialize_bundle, write_bundle_tree
from buildvault.core.differ import diff_bundles
from buildvault.core.errors import (
    BuildVaultError,
    BundleFormatError,
    BundleIntegrityError,
    FrozenArtifactError,
)
from buildvault.core.hasher import normalize_fingerprint
from buildvault.core.resolver import load_frozen_bundle
from buildvault.core.tag_registry import TagListing, TagRegistry
from buildvault.models.diff import DiffReport
from buildvault.models.pull import PULL_MANIFEST_NAME, PullManifest, PulledBundle
from buildvault.models.tags import PushResult
from buildvault.models.units import ArtifactBundle
from buildvault.storage.base import StorageProvider

logger = logging.getLogger(__name__)


@contextmanager
def _context(
    *, project: str | None = None, tag: str | None = None, fingerprint: str | None = None
) -> Iterator[None]:
    """Attach operation context to any store error raised inside the block."""
    try:
        yield
    except BuildVaultError as exc:
        exc.with_context(project=project, tag=tag, fingerprint=fingerprint)
        raise


class ArtifactStoreClient:
    """Orchestrates push, pull and diff over one storage provider.

    Parameters
    ----------
    provider:
        Storage backend (already wrapped in a retry policy if remote).
    cache_dir:
        Default pull destination root: ``{cache_dir}/{project}/{fingerprint}``.
        Diff reuses verified directories found here.
    """

    def __init__(
        self,
        provider: StorageProvider,
        *,
        cache_dir: Path = Path(".buildvault/cache"),
    ) -> None:
        self._provider = provider
        self._registry = TagRegistry(provider)
        self._cache_dir = Path(cache_dir)

    @property
    def provider(self) -> StorageProvider:
        return self._provider

    @property
    def registry(self) -> TagRegistry:
        return self._registry

    def cache_path(self, project: str, fingerprint: str) -> Path:
        return self._cache_dir / quote(project, safe="") / fingerprint

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def push(
        self,
        project: str,
        tag: str,
        local_bundle_path: Path,
        *,
        force: bool = False,
    ) -> PushResult:
        """Upload a local bundle (unless already stored) and tag it.

        Raises ``TagExistsError`` if the tag exists and *force* is false.
        The bundle upload is not rolled back in that case: it is content
        addressed and harmless to keep.
        """
        with _context(project=project, tag=tag):
            bundle = load_bundle(Path(local_bundle_path))
            if not bundle.units:
                raise BundleFormatError(
                    f"Bundle at {local_bundle_path} contains no compiled units"
                )
        fingerprint = bundle.fingerprint

        with _context(project=project, tag=tag, fingerprint=fingerprint):
            uploaded = False
            if self._provider.has_bundle(fingerprint):
                logger.debug(
                    "Bundle %s already stored; skipping upload", fingerprint[:12]
                )
            else:
                self._provider.put_bundle(fingerprint, serialize_bundle(bundle))
                uploaded = True
                logger.info(
                    "Uploaded bundle %s (%d units) to %s",
                    fingerprint[:12],
                    len(bundle.units),
                    self._provider.describe(),
                )
            pointer = self._registry.register(project, tag, fingerprint, force=force)

        return PushResult(pointer=pointer, uploaded=uploaded, unit_count=len(bundle.units))

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def resolve_ref(self, project: str, ref: str) -> tuple[str | None, str]:
        """Turn a tag or fingerprint into ``(tag_or_None, fingerprint)``.

        A bare 64-hex string that is also a registered tag is treated as
        the tag; the ``sha256:`` prefix always means a fingerprint.
        """
        fingerprint = normalize_fingerprint(ref)
        if fingerprint is not None and (
            ref.startswith("sha256:") or not self._registry.exists(project, ref)
        ):
            return None, fingerprint
        with _context(project=project, tag=ref):
            return ref, self._registry.resolve(project, ref)

    def fetch_bundle(self, fingerprint: str) -> ArtifactBundle:
        """Download a bundle and check it re-hashes to *fingerprint*."""
        with _context(fingerprint=fingerprint):
            payload = self._provider.get_bundle(fingerprint)
            try:
                bundle = deserialize_bundle(payload)
            except BundleFormatError as exc:
                raise BundleIntegrityError(
                    f"Stored bundle is unreadable: {exc.message}"
                ) from exc
            if bundle.fingerprint != fingerprint:
                raise BundleIntegrityError(
                    f"Stored bundle hashes to {bundle.fingerprint}, not its address"
                )
        return bundle

    def pull(
        self,
        project: str,
        tag_or_fingerprint: str,
        destination: Path | None = None,
    ) -> PulledBundle:
        """Materialize a stored bundle at *destination*, replacing it entirely."""
        tag, fingerprint = self.resolve_ref(project, tag_or_fingerprint)
        with _context(project=project, tag=tag, fingerprint=fingerprint):
            bundle = self.fetch_bundle(fingerprint)
            target = Path(destination) if destination else self.cache_path(project, fingerprint)
            manifest = PullManifest(
                project=project,
                tag=tag,
                fingerprint=fingerprint,
                unit_count=len(bundle.units),
            )
            self._materialize(bundle, manifest, target)

        logger.info(
            "Pulled %s@%s (%s) into %s",
            project,
            tag or "-",
            fingerprint[:12],
            target,
        )
        return PulledBundle(path=target, manifest=manifest)

    @staticmethod
    def _materialize(bundle: ArtifactBundle, manifest: PullManifest, target: Path) -> None:
        """Stage the tree beside *target*, then swap it into place."""
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
        try:
            write_bundle_tree(bundle, staging)
            (staging / PULL_MANIFEST_NAME).write_text(
                manifest.model_dump_json(indent=2) + "\n", encoding="utf-8"
            )
            if target.is_dir() and not target.is_symlink():
                retired = target.with_name(f".{target.name}.old-{uuid.uuid4().hex[:8]}")
                target.rename(retired)
                try:
                    staging.rename(target)
                except BaseException:
                    retired.rename(target)
                    raise
                shutil.rmtree(retired)
            else:
                if target.exists() or target.is_symlink():
                    target.unlink()
                staging.rename(target)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------

    def diff(self, local_bundle_path: Path, project: str, target_tag: str) -> DiffReport:
        """Compare the tagged bundle against a local build.

        ``added`` units exist only locally, ``removed`` ones only in the tag.
        """
        with _context(project=project, tag=target_tag):
            local = load_bundle(Path(local_bundle_path))
        tag, fingerprint = self.resolve_ref(project, target_tag)
        remote = self._cached_or_pulled(project, tag or target_tag, fingerprint)
        return diff_bundles(
            remote,
            local,
            tag_label=f"{project}@{target_tag}",
            local_label=str(local_bundle_path),
        )

    def _cached_or_pulled(self, project: str, ref: str, fingerprint: str) -> ArtifactBundle:
        cached = self.cache_path(project, fingerprint)
        if (cached / PULL_MANIFEST_NAME).is_file():
            try:
                _, bundle = load_frozen_bundle(cached)
            except FrozenArtifactError as exc:
                logger.warning("Discarding stale cache at %s: %s", cached, exc)
            else:
                logger.debug("Reusing pulled bundle at %s", cached)
                return bundle
        pulled = self.pull(project, ref, cached)
        _, bundle = load_frozen_bundle(pulled.path)
        return bundle

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def list_tags(self, project: str) -> TagListing:
        return self._registry.list(project)

    def resolve_tag(self, project: str, tag: str) -> str:
        with _context(project=project, tag=tag):
            return self._registry.resolve(project, tag)
