"""Tests for generated typed accessor modules."""

from __future__ import annotations

import typing
from pathlib import Path

import pytest

from buildvault.bindings.generator import generate_bindings, write_bindings
from buildvault.core.resolver import DeploymentResolver


@pytest.fixture
def resolver(client, project, two_unit_bundle, tmp_path: Path) -> DeploymentResolver:
    client.push(project, "v2.1.0", two_unit_bundle)
    return DeploymentResolver.from_pulled(client.pull(project, "v2.1.0", tmp_path / "rel"))


def _load(source: str) -> dict:
    namespace: dict = {}
    exec(compile(source, "bindings.py", "exec"), namespace)
    return namespace


class TestGenerateBindings:
    def test_module_contents(self, resolver: DeploymentResolver):
        module = _load(generate_bindings(resolver))
        assert module["PROJECT"] == resolver.project
        assert module["TAG"] == "v2.1.0"
        assert module["FINGERPRINT"] == resolver.fingerprint
        assert typing.get_args(module["UnitName"]) == (
            "src/Token.sol:Token",
            "src/Vault.sol:Vault",
        )
        assert module["get_interface"]("src/Vault.sol:Vault") == []
        assert (
            module["INTERFACES"]["src/Token.sol:Token"]
            == resolver.resolve_unit("src/Token.sol:Token").interface
        )

    def test_deterministic(self, resolver: DeploymentResolver):
        assert generate_bindings(resolver) == generate_bindings(resolver)

    def test_write_bindings(self, resolver: DeploymentResolver, tmp_path: Path):
        output = write_bindings(resolver, tmp_path / "gen" / "contracts.py")
        assert output.read_text() == generate_bindings(resolver)
        assert [p.name for p in output.parent.iterdir()] == ["contracts.py"]
