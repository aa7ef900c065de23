"""``buildvault typings PULLED_PATH`` — generate typed accessors for a pulled bundle."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from buildvault.bindings.generator import write_bindings
from buildvault.cli.commands._common import console, fail, load_settings
from buildvault.core.errors import BuildVaultError
from buildvault.core.resolver import DeploymentResolver


def typings_cmd(
    pulled_path: Path = typer.Argument(..., help="Directory produced by `buildvault pull`."),
    output: Path = typer.Option(
        Path("bindings.py"),
        "--output",
        "-o",
        help="Where to write the generated module.",
    ),
) -> None:
    """Generate a typed accessor module from a frozen, pulled bundle."""
    load_settings()
    try:
        resolver = DeploymentResolver.from_pulled(pulled_path)
        written = write_bindings(resolver, output)
    except BuildVaultError as exc:
        fail(exc)

    console.print(
        f"[bold green]Bindings written[/bold green] for "
        f"{escape(resolver.project)}@{escape(resolver.tag)} -> {escape(str(written))}"
    )
