"""Tag pointer model — a project-scoped name for exactly one bundle."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class TagPointer(BaseModel):
    """Points ``(project, tag)`` at a bundle fingerprint.

    ``revision`` starts at 1 and grows by one on every forced overwrite.
    ``push_id`` identifies the registration attempt that wrote the pointer,
    which lets a retried registration recognise its own earlier write.
    """

    model_config = ConfigDict(frozen=True)

    project: str
    tag: str
    fingerprint: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    revision: int = 1
    push_id: str = Field(default_factory=lambda: uuid.uuid4().hex)


class PushResult(BaseModel):
    """Outcome of a push: the registered pointer and whether bytes moved."""

    model_config = ConfigDict(frozen=True)

    pointer: TagPointer
    uploaded: bool
    unit_count: int

    @property
    def fingerprint(self) -> str:
        return self.pointer.fingerprint
