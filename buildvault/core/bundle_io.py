"""Read and write bundles as directory trees and as stored payloads.

Directory layout (one JSON document per compiled unit)::

    <root>/
        src/Foo.sol/
            Foo.json          -> qualified name "src/Foo.sol:Foo"
        lib/Math.sol/
            Math.json         -> qualified name "lib/Math.sol:Math"

Each unit document carries ``interface`` (any JSON), ``bytecode``
(``0x``-prefixed hex) and ``metadata`` (base64, optional). Entries whose
name starts with a dot are ignored, which keeps the pull manifest out of
the bundle.

The stored payload is canonical JSON of every unit sorted by qualified
name, so its bytes are a pure function of the bundle's content.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from buildvault.core.errors import BundleFormatError
from buildvault.core.hasher import (
    canonical_json_bytes,
    decode_bytecode,
    decode_metadata,
    encode_bytecode,
    encode_metadata,
)
from buildvault.models.units import ArtifactBundle, CompiledUnit

logger = logging.getLogger(__name__)

PAYLOAD_FORMAT_VERSION = 1
UNIT_SUFFIX = ".json"


# ---------------------------------------------------------------------------
# Unit documents
# ---------------------------------------------------------------------------


def unit_to_document(unit: CompiledUnit) -> dict[str, Any]:
    return {
        "interface": unit.interface,
        "bytecode": encode_bytecode(unit.bytecode),
        "metadata": encode_metadata(unit.metadata),
    }


def unit_from_document(qualified_name: str, doc: Any) -> CompiledUnit:
    """Build a CompiledUnit from a parsed unit document."""
    if not isinstance(doc, dict):
        raise BundleFormatError(f"Unit {qualified_name} is not a JSON object")
    missing = [key for key in ("interface", "bytecode") if key not in doc]
    if missing:
        raise BundleFormatError(
            f"Unit {qualified_name} is missing field(s): {', '.join(missing)}"
        )
    try:
        bytecode = decode_bytecode(doc["bytecode"])
        metadata = decode_metadata(doc.get("metadata") or "")
    except (AttributeError, TypeError, ValueError) as exc:
        raise BundleFormatError(
            f"Unit {qualified_name} has undecodable bytecode or metadata: {exc}"
        ) from exc
    try:
        return CompiledUnit(
            qualified_name=qualified_name,
            interface=doc["interface"],
            bytecode=bytecode,
            metadata=metadata,
        )
    except ValidationError as exc:
        raise BundleFormatError(f"Invalid unit {qualified_name}: {exc}") from exc


def render_unit_document(unit: CompiledUnit) -> bytes:
    """Render a unit document exactly as it is written to disk."""
    text = json.dumps(unit_to_document(unit), indent=2, sort_keys=True)
    return (text + "\n").encode("utf-8")


# ---------------------------------------------------------------------------
# Directory trees
# ---------------------------------------------------------------------------


def qualified_name_for(root: Path, unit_file: Path) -> str:
    relative = unit_file.relative_to(root)
    if len(relative.parts) < 2:
        raise BundleFormatError(
            f"Unit file {relative.as_posix()} must live below a source path directory"
        )
    return f"{relative.parent.as_posix()}:{unit_file.name[: -len(UNIT_SUFFIX)]}"


def unit_path_for(root: Path, qualified_name: str) -> Path:
    path, _, unit_name = qualified_name.rpartition(":")
    return root.joinpath(*path.split("/")) / f"{unit_name}{UNIT_SUFFIX}"


def _iter_unit_files(root: Path):
    for entry in sorted(root.iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            yield from _iter_unit_files(entry)
        elif entry.name.endswith(UNIT_SUFFIX):
            yield entry
        else:
            raise BundleFormatError(f"Unexpected non-unit file in bundle: {entry}")


def load_bundle(root: Path) -> ArtifactBundle:
    """Load every unit document below *root* into an ArtifactBundle."""
    root = Path(root)
    if not root.is_dir():
        raise BundleFormatError(f"Bundle directory not found: {root}")

    units: list[CompiledUnit] = []
    for unit_file in _iter_unit_files(root):
        qualified_name = qualified_name_for(root, unit_file)
        try:
            doc = json.loads(unit_file.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BundleFormatError(
                f"Unit file {unit_file} is not valid JSON: {exc}"
            ) from exc
        units.append(unit_from_document(qualified_name, doc))

    try:
        bundle = ArtifactBundle.from_units(units)
    except ValidationError as exc:
        raise BundleFormatError(f"Invalid bundle at {root}: {exc}") from exc
    logger.debug("Loaded %d unit(s) from %s", len(bundle.units), root)
    return bundle


def write_bundle_tree(bundle: ArtifactBundle, root: Path) -> None:
    """Write one unit document per unit below *root* (which must exist)."""
    base = Path(root).resolve()
    for unit in bundle.units:
        target = unit_path_for(root, unit.qualified_name)
        if not target.resolve().is_relative_to(base):
            raise BundleFormatError(
                f"Unit {unit.qualified_name} would be written outside {root}"
            )
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(render_unit_document(unit))


# ---------------------------------------------------------------------------
# Stored payloads
# ---------------------------------------------------------------------------


def serialize_bundle(bundle: ArtifactBundle) -> bytes:
    """Canonical payload bytes for a bundle."""
    payload = {
        "format": PAYLOAD_FORMAT_VERSION,
        "units": [
            {"qualifiedName": unit.qualified_name, **unit_to_document(unit)}
            for unit in bundle.units
        ],
    }
    return canonical_json_bytes(payload)


def deserialize_bundle(data: bytes) -> ArtifactBundle:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BundleFormatError(f"Stored bundle payload is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict) or payload.get("format") != PAYLOAD_FORMAT_VERSION:
        raise BundleFormatError("Unsupported bundle payload format")

    entries = payload.get("units", [])
    if not isinstance(entries, list):
        raise BundleFormatError("Stored bundle payload has no unit list")

    units = []
    for doc in entries:
        if not isinstance(doc, dict) or "qualifiedName" not in doc:
            raise BundleFormatError("Stored unit entry lacks a qualifiedName")
        units.append(unit_from_document(doc["qualifiedName"], doc))
    try:
        return ArtifactBundle.from_units(units)
    except ValidationError as exc:
        raise BundleFormatError(f"Invalid stored bundle: {exc}") from exc
