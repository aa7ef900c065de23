"""Tests for DeploymentResolver — only tag-pulled, unmodified bundles resolve."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildvault.core.errors import FrozenArtifactError, UnitNotFoundError
from buildvault.core.resolver import DeploymentResolver, resolve_unit
from buildvault.models.pull import PULL_MANIFEST_NAME


@pytest.fixture
def pulled(client, project, two_unit_bundle, tmp_path: Path):
    client.push(project, "v1.0.0", two_unit_bundle)
    return client.pull(project, "v1.0.0", tmp_path / "release")


class TestResolve:
    def test_resolve_unit(self, pulled, project):
        unit = resolve_unit(pulled, "src/Token.sol:Token")
        assert unit.bytecode_hex == "0x6080604052"
        assert unit.interface[0]["name"] == "transfer"
        assert unit.project == project
        assert unit.tag == "v1.0.0"
        assert unit.fingerprint == pulled.fingerprint

    def test_accepts_plain_path(self, pulled):
        resolver = DeploymentResolver.from_pulled(str(pulled.path))
        assert resolver.qualified_names() == ["src/Token.sol:Token", "src/Vault.sol:Vault"]
        assert len(resolver.units()) == 2

    def test_unknown_unit(self, pulled):
        with pytest.raises(UnitNotFoundError) as info:
            resolve_unit(pulled, "src/Nope.sol:Nope")
        assert info.value.tag == "v1.0.0"


class TestFrozenOnly:
    def test_local_build_rejected(self, two_unit_bundle):
        with pytest.raises(FrozenArtifactError, match="not a pulled bundle"):
            DeploymentResolver.from_pulled(two_unit_bundle)

    def test_fingerprint_pull_rejected(self, client, project, two_unit_bundle, tmp_path: Path):
        result = client.push(project, "v1", two_unit_bundle)
        pulled = client.pull(project, f"sha256:{result.fingerprint}", tmp_path / "raw")
        with pytest.raises(FrozenArtifactError, match="pulled for a tag"):
            DeploymentResolver.from_pulled(pulled)

    def test_modified_after_pull_rejected(self, pulled):
        token = pulled.path / "src" / "Token.sol" / "Token.json"
        token.write_text(token.read_text().replace("0x6080604052", "0x00"))
        with pytest.raises(FrozenArtifactError, match="modified after it was pulled"):
            DeploymentResolver.from_pulled(pulled)

    def test_added_unit_rejected(self, pulled, unit_doc):
        extra = pulled.path / "src" / "Extra.sol"
        extra.mkdir()
        (extra / "Extra.json").write_text('{"interface": [], "bytecode": "0x01"}')
        with pytest.raises(FrozenArtifactError):
            DeploymentResolver.from_pulled(pulled)

    def test_garbage_manifest_rejected(self, pulled):
        (pulled.path / PULL_MANIFEST_NAME).write_text("nope")
        with pytest.raises(FrozenArtifactError, match="Unreadable pull manifest"):
            DeploymentResolver.from_pulled(pulled)
