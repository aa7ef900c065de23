"""Local filesystem storage provider.

Layout::

    {root}/
        bundles/{fp[0:2]}/{fp}.json
        projects/{project}/tags/{tag}.json
        tmp/                      staging area for atomic writes

Every object is first written to a temp file under ``tmp/`` (same
filesystem), then moved into place. Bundles and forced tags use
``os.replace``; non-force tags use ``os.link``, which fails with
``FileExistsError`` if the name is taken, making creation a single
atomic check-and-set.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from urllib.parse import unquote

from pydantic import ValidationError

from buildvault.core.errors import (
    BundleNotFoundError,
    StorageFatalError,
    TagExistsError,
)
from buildvault.models.tags import TagPointer
from buildvault.storage.base import StorageProvider, bundle_key, tag_key, tag_prefix

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """Filesystem-backed provider.

    Parameters
    ----------
    root:
        Data directory. Created (with parents) if missing.
    """

    name = "local"

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._tmp = self._root / "tmp"
        try:
            self._tmp.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageFatalError(f"Cannot create store at {self._root}: {exc}") from exc

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        return self._root.joinpath(*key.split("/"))

    def _stage(self, data: bytes) -> Path:
        """Write *data* to a fully synced temp file and return its path."""
        fd, name = tempfile.mkstemp(dir=self._tmp, suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
        except BaseException:
            Path(name).unlink(missing_ok=True)
            raise
        return Path(name)

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    def put_bundle(self, fingerprint: str, payload: bytes) -> None:
        target = self._path(bundle_key(fingerprint))
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            staged = self._stage(payload)
            os.replace(staged, target)
        except OSError as exc:
            raise StorageFatalError(
                f"Failed to write bundle: {exc}", fingerprint=fingerprint
            ) from exc
        logger.debug("Stored bundle %s at %s", fingerprint[:12], target)

    def get_bundle(self, fingerprint: str) -> bytes:
        try:
            return self._path(bundle_key(fingerprint)).read_bytes()
        except FileNotFoundError as exc:
            raise BundleNotFoundError(
                "Bundle not found", fingerprint=fingerprint
            ) from exc
        except OSError as exc:
            raise StorageFatalError(
                f"Failed to read bundle: {exc}", fingerprint=fingerprint
            ) from exc

    def has_bundle(self, fingerprint: str) -> bool:
        return self._path(bundle_key(fingerprint)).is_file()

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def exists_tag(self, project: str, tag: str) -> bool:
        return self._path(tag_key(project, tag)).is_file()

    def put_tag_pointer(self, pointer: TagPointer, *, force: bool = False) -> None:
        target = self._path(tag_key(pointer.project, pointer.tag))
        data = pointer.model_dump_json(indent=2).encode("utf-8")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            staged = self._stage(data)
        except OSError as exc:
            raise StorageFatalError(
                f"Failed to stage tag pointer: {exc}",
                project=pointer.project,
                tag=pointer.tag,
            ) from exc

        try:
            if force:
                os.replace(staged, target)
            else:
                os.link(staged, target)
        except FileExistsError as exc:
            raise TagExistsError(
                "Tag already exists", project=pointer.project, tag=pointer.tag
            ) from exc
        except OSError as exc:
            raise StorageFatalError(
                f"Failed to write tag pointer: {exc}",
                project=pointer.project,
                tag=pointer.tag,
            ) from exc
        finally:
            staged.unlink(missing_ok=True)

    def get_tag_pointer(self, project: str, tag: str) -> TagPointer | None:
        path = self._path(tag_key(project, tag))
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageFatalError(
                f"Failed to read tag pointer: {exc}", project=project, tag=tag
            ) from exc
        return self._parse_pointer(raw, project=project, tag=tag)

    def iter_tag_pointers(self, project: str) -> Iterator[TagPointer]:
        directory = self._path(tag_prefix(project).rstrip("/"))
        if not directory.is_dir():
            return
        for entry in sorted(directory.iterdir()):
            if not entry.name.endswith(".json"):
                continue
            try:
                raw = entry.read_text(encoding="utf-8")
            except FileNotFoundError:
                continue
            yield self._parse_pointer(
                raw, project=project, tag=unquote(entry.name[: -len(".json")])
            )

    @staticmethod
    def _parse_pointer(raw: str, *, project: str, tag: str) -> TagPointer:
        try:
            return TagPointer.model_validate_json(raw)
        except ValidationError as exc:
            raise StorageFatalError(
                f"Corrupt tag pointer: {exc}", project=project, tag=tag
            ) from exc

    def describe(self) -> str:
        return f"local:{self._root}"
