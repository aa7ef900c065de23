"""Tests for reading/writing bundle directories and stored payloads."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from buildvault.core.bundle_io import (
    deserialize_bundle,
    load_bundle,
    serialize_bundle,
    write_bundle_tree,
)
from buildvault.core.errors import BundleFormatError


class TestLoadBundle:
    def test_qualified_names_from_paths(self, make_bundle_dir, unit_doc):
        root = make_bundle_dir(
            {
                "src/Foo.sol:Foo": unit_doc(),
                "lib/math/Math.sol:Math": unit_doc("0x00"),
            }
        )
        bundle = load_bundle(root)
        assert bundle.qualified_names() == ["lib/math/Math.sol:Math", "src/Foo.sol:Foo"]
        assert bundle.get("lib/math/Math.sol:Math").bytecode == b"\x00"

    def test_metadata_is_base64(self, make_bundle_dir, unit_doc):
        root = make_bundle_dir({"src/A.sol:A": unit_doc(metadata="aGVsbG8=")})
        assert load_bundle(root).get("src/A.sol:A").metadata == b"hello"

    def test_metadata_optional(self, make_bundle_dir):
        root = make_bundle_dir({"src/A.sol:A": {"interface": [], "bytecode": "0x01"}})
        assert load_bundle(root).get("src/A.sol:A").metadata == b""

    def test_hidden_entries_ignored(self, make_bundle_dir, unit_doc):
        root = make_bundle_dir({"src/A.sol:A": unit_doc()})
        (root / ".buildvault-pull.json").write_text("{}", encoding="utf-8")
        (root / ".cache").mkdir()
        (root / ".cache" / "junk.bin").write_bytes(b"\x00")
        assert load_bundle(root).qualified_names() == ["src/A.sol:A"]

    def test_unit_at_root_rejected(self, tmp_path: Path, unit_doc):
        root = tmp_path / "flat"
        root.mkdir()
        (root / "Foo.json").write_text(json.dumps(unit_doc()), encoding="utf-8")
        with pytest.raises(BundleFormatError, match="below a source path"):
            load_bundle(root)

    def test_non_unit_file_rejected(self, make_bundle_dir, unit_doc):
        root = make_bundle_dir({"src/A.sol:A": unit_doc()})
        (root / "src" / "README.md").write_text("hi", encoding="utf-8")
        with pytest.raises(BundleFormatError, match="non-unit"):
            load_bundle(root)

    def test_invalid_json_rejected(self, make_bundle_dir, unit_doc):
        root = make_bundle_dir({"src/A.sol:A": unit_doc()})
        (root / "src" / "A.sol" / "A.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(BundleFormatError, match="not valid JSON"):
            load_bundle(root)

    def test_missing_fields_rejected(self, make_bundle_dir):
        root = make_bundle_dir({"src/A.sol:A": {"interface": []}})
        with pytest.raises(BundleFormatError, match="bytecode"):
            load_bundle(root)

    def test_bad_bytecode_rejected(self, make_bundle_dir, unit_doc):
        root = make_bundle_dir({"src/A.sol:A": unit_doc("0xZZ")})
        with pytest.raises(BundleFormatError, match="undecodable"):
            load_bundle(root)

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(BundleFormatError, match="not found"):
            load_bundle(tmp_path / "nope")


class TestWriteAndPayload:
    def test_tree_written_then_reloaded_is_equal(self, two_unit_bundle, tmp_path: Path):
        bundle = load_bundle(two_unit_bundle)
        out = tmp_path / "out"
        out.mkdir()
        write_bundle_tree(bundle, out)
        assert (out / "src" / "Token.sol" / "Token.json").is_file()
        assert load_bundle(out) == bundle

    def test_payload_is_canonical(self, two_unit_bundle):
        bundle = load_bundle(two_unit_bundle)
        payload = serialize_bundle(bundle)
        assert payload == serialize_bundle(load_bundle(two_unit_bundle))
        assert deserialize_bundle(payload).fingerprint == bundle.fingerprint

    def test_unknown_payload_format(self):
        with pytest.raises(BundleFormatError, match="format"):
            deserialize_bundle(b'{"format": 99, "units": []}')

    def test_garbage_payload(self):
        with pytest.raises(BundleFormatError):
            deserialize_bundle(b"\xff\xfe")

    @pytest.mark.parametrize("units", ["5", "null", '{"a": 1}', '"units"'])
    def test_payload_without_unit_list(self, units: str):
        with pytest.raises(BundleFormatError, match="unit list"):
            deserialize_bundle(f'{{"format": 1, "units": {units}}}'.encode())

    @pytest.mark.parametrize(
        "name",
        ["../../escaped.sol:Evil", "src/A.sol:Sub/B", "src/A.sol:.Hidden", "/abs/A.sol:A"],
    )
    def test_payload_names_without_directory_form(self, name: str):
        doc = {"qualifiedName": name, "interface": [], "bytecode": "0x01", "metadata": ""}
        payload = json.dumps({"format": 1, "units": [doc]}).encode()
        with pytest.raises(BundleFormatError):
            deserialize_bundle(payload)

    def test_write_refuses_to_follow_links_outside_root(self, two_unit_bundle, tmp_path: Path):
        outside = tmp_path / "outside"
        outside.mkdir()
        out = tmp_path / "linked"
        out.mkdir()
        (out / "src").symlink_to(outside, target_is_directory=True)
        with pytest.raises(BundleFormatError, match="outside"):
            write_bundle_tree(load_bundle(two_unit_bundle), out)
        assert list(outside.iterdir()) == []
