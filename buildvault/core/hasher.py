"""Canonical hashing helpers for unit digests and bundle fingerprints.

Every digest in buildvault is a SHA-256 over canonical JSON, so the same
content always hashes the same regardless of dict ordering or the order in
which a compiler happened to emit its units.
"""

from __future__ import annotations

import base64
import hashlib
import json
import re
from collections.abc import Iterable
from typing import Any

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def encode_bytecode(data: bytes) -> str:
    """Render bytecode as ``0x``-prefixed lowercase hex."""
    return "0x" + data.hex()


def decode_bytecode(text: str) -> bytes:
    """Parse ``0x``-prefixed (or bare) hex into bytes."""
    return bytes.fromhex(text.removeprefix("0x").removeprefix("0X"))


def encode_metadata(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_metadata(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


def unit_content_digest(interface: Any, bytecode: bytes) -> str:
    """SHA-256 over the parts of a unit that matter for deployment.

    Metadata is deliberately excluded: two builds whose interface and
    bytecode agree are the same unit as far as a diff is concerned.
    """
    payload = {"interface": interface, "bytecode": encode_bytecode(bytecode)}
    return sha256_hex(canonical_json_bytes(payload))


def unit_digest(
    qualified_name: str, interface: Any, bytecode: bytes, metadata: bytes
) -> str:
    """SHA-256 over every field of a unit, including its name and metadata."""
    payload = {
        "qualifiedName": qualified_name,
        "interface": interface,
        "bytecode": encode_bytecode(bytecode),
        "metadata": encode_metadata(metadata),
    }
    return sha256_hex(canonical_json_bytes(payload))


def bundle_fingerprint(unit_digests: Iterable[tuple[str, str]]) -> str:
    """Fingerprint a bundle from ``(qualified_name, unit_digest)`` pairs.

    The pairs are sorted before hashing, so the result does not depend on
    the order units were produced in.
    """
    entries = sorted([name, digest] for name, digest in unit_digests)
    return sha256_hex(canonical_json_bytes(entries))


def normalize_fingerprint(value: str) -> str | None:
    """Return the bare hex digest if *value* looks like a fingerprint.

    Accepts ``sha256:<hex>`` or ``<hex>``. Returns ``None`` for anything
    else, which callers treat as a tag name.
    """
    candidate = value.removeprefix("sha256:").lower()
    if _HEX_DIGEST.match(candidate):
        return candidate
    return None
