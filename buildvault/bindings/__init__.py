"""Typed accessor generation for pulled bundles."""

from buildvault.bindings.generator import generate_bindings, write_bindings

__all__ = ["generate_bindings", "write_bindings"]
