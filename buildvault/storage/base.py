"""Storage provider interface.

A provider stores two kinds of objects under stable logical keys:

- bundle payloads, addressed by fingerprint (``bundles/<fp[0:2]>/<fp>.json``)
- tag pointers, addressed by project and tag
  (``projects/<project>/tags/<tag>.json``)

Each write is atomic per object. Non-force tag writes are a single
check-and-set: of two racing writers exactly one succeeds and the other
gets :class:`~buildvault.core.errors.TagExistsError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from urllib.parse import quote

from buildvault.models.tags import TagPointer


def bundle_key(fingerprint: str) -> str:
    return f"bundles/{fingerprint[:2]}/{fingerprint}.json"


def tag_prefix(project: str) -> str:
    return f"projects/{quote(project, safe='')}/tags/"


def tag_key(project: str, tag: str) -> str:
    return f"{tag_prefix(project)}{quote(tag, safe='')}.json"


class StorageProvider(ABC):
    """Capability set every backend implements."""

    name: str = "abstract"

    @abstractmethod
    def put_bundle(self, fingerprint: str, payload: bytes) -> None:
        """Store *payload* under *fingerprint*. Rewriting identical content is safe."""

    @abstractmethod
    def get_bundle(self, fingerprint: str) -> bytes:
        """Return the payload, or raise ``BundleNotFoundError``."""

    @abstractmethod
    def has_bundle(self, fingerprint: str) -> bool: ...

    @abstractmethod
    def exists_tag(self, project: str, tag: str) -> bool: ...

    @abstractmethod
    def put_tag_pointer(self, pointer: TagPointer, *, force: bool = False) -> None:
        """Write a tag pointer.

        Raises ``TagExistsError`` when *force* is false and the tag exists.
        """

    @abstractmethod
    def get_tag_pointer(self, project: str, tag: str) -> TagPointer | None:
        """Return the pointer, or ``None`` if the tag is not registered."""

    @abstractmethod
    def iter_tag_pointers(self, project: str) -> Iterator[TagPointer]:
        """Yield every pointer of *project* in key order."""

    def describe(self) -> str:
        return self.name
