"""Tests for TagRegistry — create-once tags, forced moves, lazy listing."""

from __future__ import annotations

import pytest

from buildvault.core.errors import TagExistsError, TagNotFoundError
from buildvault.core.tag_registry import TagRegistry

FP_A = "aa" * 32
FP_B = "bb" * 32


class TestRegister:
    def test_register_and_resolve(self, registry: TagRegistry):
        pointer = registry.register("p", "v1.0.0", FP_A)
        assert pointer.revision == 1
        assert registry.resolve("p", "v1.0.0") == FP_A
        assert registry.exists("p", "v1.0.0") is True

    def test_duplicate_rejected(self, registry: TagRegistry):
        registry.register("p", "v1.0.0", FP_A)
        with pytest.raises(TagExistsError):
            registry.register("p", "v1.0.0", FP_B)
        assert registry.resolve("p", "v1.0.0") == FP_A

    def test_duplicate_rejected_even_for_same_fingerprint(self, registry: TagRegistry):
        registry.register("p", "v1.0.0", FP_A)
        with pytest.raises(TagExistsError):
            registry.register("p", "v1.0.0", FP_A)

    def test_force_moves_and_bumps_revision(self, registry: TagRegistry):
        registry.register("p", "latest", FP_A)
        moved = registry.register("p", "latest", FP_B, force=True)
        assert moved.revision == 2
        assert registry.resolve("p", "latest") == FP_B

    def test_force_on_new_tag(self, registry: TagRegistry):
        assert registry.register("p", "fresh", FP_A, force=True).revision == 1

    @pytest.mark.parametrize(("project", "tag"), [("", "t"), ("p", ""), ("  ", "t")])
    def test_empty_names_rejected(self, registry: TagRegistry, project, tag):
        with pytest.raises(ValueError):
            registry.register(project, tag, FP_A)


class TestLookup:
    def test_unknown_tag(self, registry: TagRegistry):
        with pytest.raises(TagNotFoundError) as info:
            registry.resolve("p", "ghost")
        assert info.value.project == "p"
        assert info.value.tag == "ghost"
        assert registry.exists("p", "ghost") is False

    def test_get_returns_full_pointer(self, registry: TagRegistry):
        registered = registry.register("p", "v1", FP_A)
        assert registry.get("p", "v1") == registered


class TestListing:
    def test_listing_is_lazy(self, counting_provider):
        registry = TagRegistry(counting_provider)
        listing = registry.list("p")
        assert "iter_tag_pointers" not in counting_provider.calls
        assert list(listing) == []
        assert counting_provider.calls["iter_tag_pointers"] == 1

    def test_listing_restarts_and_sees_new_tags(self, registry: TagRegistry):
        listing = registry.list("p")
        registry.register("p", "a", FP_A)
        assert [p.tag for p in listing] == ["a"]
        registry.register("p", "b", FP_B)
        assert sorted(p.tag for p in listing) == ["a", "b"]

    def test_listing_scoped_to_project(self, registry: TagRegistry):
        registry.register("p", "a", FP_A)
        registry.register("q", "b", FP_B)
        assert [p.tag for p in registry.list("q")] == ["b"]
