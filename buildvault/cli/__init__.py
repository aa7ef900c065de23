"""buildvault CLI — Typer-based command-line interface.

Provides the ``buildvault`` command with subcommands for pushing, pulling
and diffing tagged bundles, listing tags, generating typed bindings,
publishing releases and recording deployments.

All output uses Rich for formatted terminal display.
"""
