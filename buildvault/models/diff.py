"""Diff report models — derived from two bundles, never stored."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DiffStatus(str, Enum):
    """Classification of one qualified name across two bundles."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class UnitDiff(BaseModel):
    model_config = ConfigDict(frozen=True)

    qualified_name: str
    status: DiffStatus
    tag_digest: str | None = None  # content digest in the tagged bundle
    local_digest: str | None = None  # content digest in the local build


class DiffReport(BaseModel):
    """Unit-by-unit comparison of a tagged bundle against a local build.

    ``added`` means present only in the local build, ``removed`` means
    present only in the tagged bundle.
    """

    model_config = ConfigDict(frozen=True)

    tag_label: str
    local_label: str
    tag_fingerprint: str
    local_fingerprint: str
    entries: tuple[UnitDiff, ...] = ()

    def by_status(self, status: DiffStatus) -> list[str]:
        return [e.qualified_name for e in self.entries if e.status == status]

    @property
    def added(self) -> list[str]:
        return self.by_status(DiffStatus.ADDED)

    @property
    def removed(self) -> list[str]:
        return self.by_status(DiffStatus.REMOVED)

    @property
    def modified(self) -> list[str]:
        return self.by_status(DiffStatus.MODIFIED)

    @property
    def unchanged(self) -> list[str]:
        return self.by_status(DiffStatus.UNCHANGED)

    @property
    def has_changes(self) -> bool:
        return any(e.status != DiffStatus.UNCHANGED for e in self.entries)

    def changes(self) -> list[UnitDiff]:
        """Entries whose status is anything but unchanged."""
        return [e for e in self.entries if e.status != DiffStatus.UNCHANGED]

    def status_of(self, qualified_name: str) -> DiffStatus | None:
        for entry in self.entries:
            if entry.qualified_name == qualified_name:
                return entry.status
        return None
