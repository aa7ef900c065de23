"""``buildvault pull REF`` — materialize a tagged bundle locally."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from buildvault.cli.commands._common import build_client, console, fail, load_settings
from buildvault.core.errors import BuildVaultError


def pull_cmd(
    ref: str = typer.Argument(
        "latest",
        help="Tag (or sha256:<fingerprint>) to pull.",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Destination directory (replaced entirely). Defaults to the cache.",
    ),
    project: str = typer.Option(None, "--project", "-p", help="Project name."),
) -> None:
    """Pull a bundle into a local directory, replacing whatever was there."""
    settings = load_settings(project)
    client = build_client(settings)
    try:
        pulled = client.pull(settings.project, ref, output)
    except BuildVaultError as exc:
        fail(exc)

    console.print(
        f"[bold green]Pulled[/bold green] {escape(settings.project)}@{escape(ref)} "
        f"({pulled.manifest.unit_count} units)"
    )
    console.print(f"[bold]Fingerprint:[/bold] {pulled.fingerprint}")
    console.print(f"[bold]Path:[/bold] {escape(str(pulled.path))}")
