"""``buildvault record-deployment`` — append to the deployment summary."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from buildvault.cli.commands._common import console, fail, load_settings
from buildvault.core.errors import BuildVaultError
from buildvault.core.resolver import DeploymentResolver
from buildvault.deployments.summary import DeploymentSummary


def record_deployment_cmd(
    pulled_path: Path = typer.Argument(..., help="Pulled bundle the unit was deployed from."),
    qualified_name: str = typer.Argument(..., help="Qualified name, e.g. src/Foo.sol:Foo."),
    address: str = typer.Argument(..., help="Deployed address."),
    chain_id: str = typer.Option(..., "--chain-id", "-c", help="Target chain id."),
    summary_path: Path = typer.Option(
        Path("deployments/summary.json"),
        "--summary",
        "-s",
        help="Deployment summary file.",
    ),
) -> None:
    """Record a deployment of a unit from a frozen bundle.

    The unit must exist in the pulled bundle; the tag recorded is the one
    the bundle was pulled for.
    """
    load_settings()
    try:
        resolver = DeploymentResolver.from_pulled(pulled_path)
        unit = resolver.resolve_unit(qualified_name)
        summary = DeploymentSummary(summary_path)
        added = summary.record(chain_id, resolver.tag, unit.qualified_name, address)
    except BuildVaultError as exc:
        fail(exc)

    verb = "Recorded" if added else "Already recorded"
    console.print(
        f"[bold green]{verb}[/bold green] {escape(unit.qualified_name)}@{escape(resolver.tag)} "
        f"on chain {escape(chain_id)} at {escape(address)}"
    )
