"""``buildvault tags`` — list a project's tags."""

from __future__ import annotations

import typer
from rich.markup import escape
from rich.table import Table

from buildvault.cli.commands._common import build_client, console, fail, load_settings
from buildvault.core.errors import BuildVaultError


def tags_cmd(
    project: str = typer.Option(None, "--project", "-p", help="Project name."),
) -> None:
    """List every tag of the project, oldest first."""
    settings = load_settings(project)
    client = build_client(settings)
    try:
        pointers = sorted(client.list_tags(settings.project), key=lambda p: p.created_at)
    except BuildVaultError as exc:
        fail(exc)

    if not pointers:
        console.print(f"[dim]No tags for project {escape(settings.project)}.[/dim]")
        return

    table = Table(title=f"Tags of {escape(settings.project)}")
    table.add_column("Tag", style="cyan")
    table.add_column("Fingerprint", style="green")
    table.add_column("Revision", justify="right")
    table.add_column("Created (UTC)")
    for pointer in pointers:
        table.add_row(
            escape(pointer.tag),
            pointer.fingerprint[:16],
            str(pointer.revision),
            pointer.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)
