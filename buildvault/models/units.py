"""Compiled unit and bundle models (immutable once produced)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from buildvault.core.hasher import bundle_fingerprint, unit_content_digest, unit_digest


def split_qualified_name(qualified_name: str) -> tuple[str, str]:
    """Split ``<path>:<unitName>`` into its path and unit name.

    The split happens at the last colon so paths that contain a colon
    still parse. Both halves must be non-empty, and the name must map onto
    a bundle directory and back unchanged: the path is relative, made of
    non-empty segments that neither start with a dot nor equal ``..``, and
    the unit name holds no ``/`` and does not start with a dot.
    """
    path, sep, unit_name = qualified_name.rpartition(":")
    if not sep or not path or not unit_name:
        raise ValueError(
            f"Qualified name must look like '<path>:<unitName>', got {qualified_name!r}"
        )
    if "\\" in qualified_name or "\x00" in qualified_name:
        raise ValueError(f"Qualified name contains a forbidden character: {qualified_name!r}")
    for segment in path.split("/"):
        if not segment or segment.startswith("."):
            raise ValueError(
                f"Qualified name path must be relative with plain segments, "
                f"got {qualified_name!r}"
            )
    if "/" in unit_name or unit_name.startswith("."):
        raise ValueError(
            f"Unit name must be a plain file name, got {unit_name!r} in {qualified_name!r}"
        )
    return path, unit_name


class CompiledUnit(BaseModel):
    """One compiler output: interface descriptor, bytecode and opaque metadata."""

    model_config = ConfigDict(frozen=True)

    qualified_name: str
    interface: Any
    bytecode: bytes
    metadata: bytes = b""

    @field_validator("qualified_name")
    @classmethod
    def _check_qualified_name(cls, value: str) -> str:
        split_qualified_name(value)
        return value

    @property
    def path(self) -> str:
        return split_qualified_name(self.qualified_name)[0]

    @property
    def unit_name(self) -> str:
        return split_qualified_name(self.qualified_name)[1]

    @property
    def content_digest(self) -> str:
        """Digest of interface + bytecode, used to classify modifications."""
        return unit_content_digest(self.interface, self.bytecode)

    @property
    def digest(self) -> str:
        """Digest of every field, used for the bundle fingerprint."""
        return unit_digest(
            self.qualified_name, self.interface, self.bytecode, self.metadata
        )


class ArtifactBundle(BaseModel):
    """The full output tree of one build, identified by its fingerprint.

    Units are kept sorted by qualified name, so two bundles built from the
    same units in a different order compare equal and share a fingerprint.
    """

    model_config = ConfigDict(frozen=True)

    units: tuple[CompiledUnit, ...] = ()

    @field_validator("units")
    @classmethod
    def _sort_and_check_unique(
        cls, value: tuple[CompiledUnit, ...]
    ) -> tuple[CompiledUnit, ...]:
        ordered = tuple(sorted(value, key=lambda unit: unit.qualified_name))
        for previous, current in zip(ordered, ordered[1:]):
            if previous.qualified_name == current.qualified_name:
                raise ValueError(
                    f"Duplicate qualified name in bundle: {current.qualified_name}"
                )
        return ordered

    @classmethod
    def from_units(cls, units: Iterable[CompiledUnit]) -> ArtifactBundle:
        return cls(units=tuple(units))

    @property
    def fingerprint(self) -> str:
        return bundle_fingerprint(
            (unit.qualified_name, unit.digest) for unit in self.units
        )

    def qualified_names(self) -> list[str]:
        return [unit.qualified_name for unit in self.units]

    def get(self, qualified_name: str) -> CompiledUnit | None:
        """Return the unit with *qualified_name*, or ``None``."""
        for unit in self.units:
            if unit.qualified_name == qualified_name:
                return unit
        return None

    def as_mapping(self) -> dict[str, CompiledUnit]:
        return {unit.qualified_name: unit for unit in self.units}

