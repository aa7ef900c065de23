"""``buildvault release`` — publish ``v<version>`` and pull it back.

The version comes from ``--version`` or the ``version`` field of a
``package.json``. An existing release tag is reported and reused; any
other push failure aborts with a non-zero exit code.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.panel import Panel

from buildvault.cli.commands._common import build_client, console, fail, load_settings
from buildvault.core.errors import BuildVaultError
from buildvault.core.release import publish_release, read_package_version


def release_cmd(
    artifact_path: Path = typer.Option(
        Path("artifacts"),
        "--artifact-path",
        "-a",
        help="Directory holding the compiled bundle.",
    ),
    version: str = typer.Option(
        None,
        "--version",
        "-v",
        help="Release version (defaults to package.json's version).",
    ),
    package_json: Path = typer.Option(
        Path("package.json"),
        "--package-json",
        help="Where to read the version from when --version is not given.",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to pull the release. Defaults to the cache.",
    ),
    project: str = typer.Option(None, "--project", "-p", help="Project name."),
) -> None:
    """Publish a release tag and pull the frozen release bundle."""
    settings = load_settings(project)
    client = build_client(settings)
    try:
        resolved_version = version or read_package_version(package_json)
        outcome = publish_release(
            client,
            settings.project,
            resolved_version,
            artifact_path,
            destination=output,
        )
    except (BuildVaultError, ValueError) as exc:
        fail(exc)

    status = (
        "[bold green]Published[/bold green]"
        if outcome.newly_published
        else "[bold yellow]Already published[/bold yellow]"
    )
    console.print(
        Panel(
            "\n".join([
                status,
                "",
                f"[bold]Project:[/bold]     {escape(outcome.project)}",
                f"[bold]Tag:[/bold]         {escape(outcome.tag)}",
                f"[bold]Fingerprint:[/bold] {outcome.fingerprint}",
                f"[bold]Pulled to:[/bold]   {escape(str(outcome.pulled.path))}",
            ]),
            title="[bold]Release[/bold]",
            border_style="green" if outcome.newly_published else "yellow",
        )
    )
