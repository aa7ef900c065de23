"""Shared test fixtures for buildvault."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from buildvault.core.client import ArtifactStoreClient
from buildvault.core.tag_registry import TagRegistry
from buildvault.models.tags import TagPointer
from buildvault.storage.base import StorageProvider
from buildvault.storage.local import LocalStorageProvider

ERC20_ABI = [
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    }
]


class CountingProvider(StorageProvider):
    """Delegates to a real provider and counts calls per method."""

    def __init__(self, inner: StorageProvider) -> None:
        self.inner = inner
        self.name = inner.name
        self.calls: dict[str, int] = {}

    def _count(self, method: str) -> None:
        self.calls[method] = self.calls.get(method, 0) + 1

    def put_bundle(self, fingerprint: str, payload: bytes) -> None:
        self._count("put_bundle")
        self.inner.put_bundle(fingerprint, payload)

    def get_bundle(self, fingerprint: str) -> bytes:
        self._count("get_bundle")
        return self.inner.get_bundle(fingerprint)

    def has_bundle(self, fingerprint: str) -> bool:
        self._count("has_bundle")
        return self.inner.has_bundle(fingerprint)

    def exists_tag(self, project: str, tag: str) -> bool:
        self._count("exists_tag")
        return self.inner.exists_tag(project, tag)

    def put_tag_pointer(self, pointer: TagPointer, *, force: bool = False) -> None:
        self._count("put_tag_pointer")
        self.inner.put_tag_pointer(pointer, force=force)

    def get_tag_pointer(self, project: str, tag: str) -> TagPointer | None:
        self._count("get_tag_pointer")
        return self.inner.get_tag_pointer(project, tag)

    def iter_tag_pointers(self, project: str) -> Iterator[TagPointer]:
        self._count("iter_tag_pointers")
        return self.inner.iter_tag_pointers(project)


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def local_provider(store_root: Path) -> LocalStorageProvider:
    """Provide a fresh LocalStorageProvider in a temp directory."""
    return LocalStorageProvider(store_root)


@pytest.fixture
def counting_provider(local_provider: LocalStorageProvider) -> CountingProvider:
    return CountingProvider(local_provider)


@pytest.fixture
def registry(local_provider: LocalStorageProvider) -> TagRegistry:
    return TagRegistry(local_provider)


@pytest.fixture
def client(counting_provider: CountingProvider, tmp_path: Path) -> ArtifactStoreClient:
    """Provide a client over a counting local provider with a temp cache."""
    return ArtifactStoreClient(counting_provider, cache_dir=tmp_path / "cache")


@pytest.fixture
def project() -> str:
    return "contracts"


# ---------------------------------------------------------------------------
# Bundle directory factories
# ---------------------------------------------------------------------------


def _unit_doc(
    bytecode: str = "0x6080604052",
    interface: Any = None,
    metadata: str = "",
) -> dict[str, Any]:
    """Build a unit document the way a compiler would emit it."""
    return {
        "interface": ERC20_ABI if interface is None else interface,
        "bytecode": bytecode,
        "metadata": metadata,
    }


@pytest.fixture
def unit_doc() -> Callable[..., dict[str, Any]]:
    """Factory fixture: a compiler-style unit document."""
    return _unit_doc


@pytest.fixture
def make_bundle_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: write ``{qualified_name: unit_doc}`` as a bundle tree."""

    counter = {"n": 0}

    def _factory(units: dict[str, dict[str, Any]], name: str | None = None) -> Path:
        counter["n"] += 1
        root = tmp_path / (name or f"build-{counter['n']}")
        root.mkdir(parents=True, exist_ok=True)
        for qualified_name, doc in units.items():
            path, _, unit_name = qualified_name.rpartition(":")
            target = root.joinpath(*path.split("/")) / f"{unit_name}.json"
            target.parent.mkdir(parents=True, exist_ok=True)
            # Compiler output is not canonical; keep it indented and unsorted.
            target.write_text(json.dumps(doc, indent=4), encoding="utf-8")
        return root

    return _factory


@pytest.fixture
def two_unit_bundle(make_bundle_dir: Callable[..., Path]) -> Path:
    """A bundle with Token and Vault units."""
    return make_bundle_dir(
        {
            "src/Token.sol:Token": _unit_doc("0x6080604052"),
            "src/Vault.sol:Vault": _unit_doc("0x60806040526001", interface=[]),
        },
        name="two-unit",
    )
