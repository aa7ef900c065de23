"""``buildvault diff TAG`` — compare a local build against a tagged bundle."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from buildvault.cli.commands._common import build_client, console, fail, load_settings
from buildvault.core.errors import BuildVaultError
from buildvault.models.diff import DiffStatus

_STYLES = {
    DiffStatus.ADDED: "green",
    DiffStatus.REMOVED: "red",
    DiffStatus.MODIFIED: "yellow",
    DiffStatus.UNCHANGED: "dim",
}


def diff_cmd(
    target_tag: str = typer.Argument(..., help="Tag to compare against."),
    artifact_path: Path = typer.Option(
        Path("artifacts"),
        "--artifact-path",
        "-a",
        help="Directory holding the local bundle.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
    show_unchanged: bool = typer.Option(
        False, "--all", help="Also list unchanged units."
    ),
    project: str = typer.Option(None, "--project", "-p", help="Project name."),
) -> None:
    """Show which units were added, removed or modified since TAG.

    Exits 0 whether or not there are differences.
    """
    settings = load_settings(project)
    client = build_client(settings)
    try:
        report = client.diff(artifact_path, settings.project, target_tag)
    except BuildVaultError as exc:
        fail(exc)

    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2))
        return

    if not report.has_changes:
        console.print(f"[green]No changes against {escape(report.tag_label)}.[/green]")
        if not show_unchanged:
            return

    table = Table(title=f"Diff against {escape(report.tag_label)}")
    table.add_column("Unit", style="cyan")
    table.add_column("Status")
    for entry in report.entries:
        if entry.status == DiffStatus.UNCHANGED and not show_unchanged:
            continue
        style = _STYLES[entry.status]
        table.add_row(escape(entry.qualified_name), f"[{style}]{entry.status.value}[/{style}]")
    console.print(table)
