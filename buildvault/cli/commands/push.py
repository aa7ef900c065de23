"""``buildvault push ARTIFACT_PATH --tag TAG`` — upload a local bundle under a tag."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.panel import Panel

from buildvault.cli.commands._common import build_client, console, fail, load_settings
from buildvault.core.errors import BuildVaultError


def push_cmd(
    artifact_path: Path = typer.Argument(
        ...,
        help="Directory holding the compiled bundle.",
    ),
    tag: str = typer.Option(..., "--tag", "-t", help="Tag to register the bundle under."),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Move the tag if it already exists.",
    ),
    project: str = typer.Option(None, "--project", "-p", help="Project name."),
) -> None:
    """Push a bundle and register it under a tag.

    Exits with code 3 if the tag already exists and --force was not given.
    """
    settings = load_settings(project)
    client = build_client(settings)
    try:
        result = client.push(settings.project, tag, artifact_path, force=force)
    except BuildVaultError as exc:
        fail(exc)

    upload = "uploaded" if result.uploaded else "already stored, upload skipped"
    console.print(
        Panel(
            "\n".join([
                f"[bold]Project:[/bold]     {escape(settings.project)}",
                f"[bold]Tag:[/bold]         {escape(tag)} (revision {result.pointer.revision})",
                f"[bold]Fingerprint:[/bold] {result.fingerprint}",
                f"[bold]Units:[/bold]       {result.unit_count}",
                f"[bold]Content:[/bold]     {upload}",
            ]),
            title="[bold green]Pushed[/bold green]",
            border_style="green",
        )
    )
