"""Tag Registry — project-scoped names for bundle fingerprints.

Tags are created, read and (only when explicitly forced) overwritten.
There is no delete. The registry holds no state of its own: every call
goes to the storage provider, which owns the atomic check-and-set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from buildvault.core.errors import TagExistsError, TagNotFoundError
from buildvault.models.tags import TagPointer
from buildvault.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class TagListing:
    """Lazy, finite, restartable view over a project's tags.

    Nothing is read until iteration starts, and each new iteration
    re-reads the backend.
    """

    def __init__(self, provider: StorageProvider, project: str) -> None:
        self._provider = provider
        self._project = project

    def __iter__(self) -> Iterator[TagPointer]:
        return iter(self._provider.iter_tag_pointers(self._project))

    def __repr__(self) -> str:
        return f"TagListing(project={self._project!r})"


class TagRegistry:
    """Registers and resolves tag pointers through a storage provider.

    Parameters
    ----------
    provider:
        Backend that persists the pointers.
    """

    def __init__(self, provider: StorageProvider) -> None:
        self._provider = provider

    @staticmethod
    def _validate(project: str, tag: str) -> None:
        if not project or not project.strip():
            raise ValueError("Project name must be a non-empty string")
        if not tag or not tag.strip():
            raise ValueError("Tag must be a non-empty string")

    def register(
        self, project: str, tag: str, fingerprint: str, *, force: bool = False
    ) -> TagPointer:
        """Point ``(project, tag)`` at *fingerprint*.

        Raises ``TagExistsError`` if the tag exists and *force* is false.
        With *force*, the pointer is replaced and its revision bumped; the
        previous bundle stays retrievable by its fingerprint.
        """
        self._validate(project, tag)
        revision = 1
        if force:
            previous = self._provider.get_tag_pointer(project, tag)
            if previous is not None:
                revision = previous.revision + 1
                logger.info(
                    "Force-moving tag %s/%s from %s to %s",
                    project,
                    tag,
                    previous.fingerprint[:12],
                    fingerprint[:12],
                )

        pointer = TagPointer(
            project=project, tag=tag, fingerprint=fingerprint, revision=revision
        )
        try:
            self._provider.put_tag_pointer(pointer, force=force)
        except TagExistsError:
            # A retried write whose first attempt already landed finds its
            # own pointer in place.
            existing = self._provider.get_tag_pointer(project, tag)
            if existing is not None and existing.push_id == pointer.push_id:
                return existing
            raise
        logger.info("Registered tag %s/%s -> %s", project, tag, fingerprint[:12])
        return pointer

    def get(self, project: str, tag: str) -> TagPointer:
        """Return the full pointer, or raise ``TagNotFoundError``."""
        self._validate(project, tag)
        pointer = self._provider.get_tag_pointer(project, tag)
        if pointer is None:
            raise TagNotFoundError("Tag not found", project=project, tag=tag)
        return pointer

    def resolve(self, project: str, tag: str) -> str:
        """Return the fingerprint the tag points at."""
        return self.get(project, tag).fingerprint

    def exists(self, project: str, tag: str) -> bool:
        self._validate(project, tag)
        return self._provider.exists_tag(project, tag)

    def list(self, project: str) -> TagListing:
        return TagListing(self._provider, project)
