"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildvault`` (configured via pyproject.toml scripts).

Commands: push, pull, diff, tags, typings, release, record-deployment.
Storage is configured through ``BUILDVAULT_*`` environment variables or
a ``.env`` file; see :class:`buildvault.config.VaultSettings`.
"""

from __future__ import annotations

import typer

from buildvault.cli.commands.deployments import record_deployment_cmd
from buildvault.cli.commands.diff import diff_cmd
from buildvault.cli.commands.pull import pull_cmd
from buildvault.cli.commands.push import push_cmd
from buildvault.cli.commands.release import release_cmd
from buildvault.cli.commands.tags import tags_cmd
from buildvault.cli.commands.typings import typings_cmd

app = typer.Typer(
    name="buildvault",
    help="buildvault: tagged, content-addressed storage for compilation artifacts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="push", help="Push a local bundle under a tag.")(push_cmd)
app.command(name="pull", help="Pull a tagged bundle into a local directory.")(pull_cmd)
app.command(name="diff", help="Diff a local bundle against a tag.")(diff_cmd)
app.command(name="tags", help="List a project's tags.")(tags_cmd)
app.command(name="typings", help="Generate typed bindings from a pulled bundle.")(typings_cmd)
app.command(name="release", help="Publish a release tag and pull it back.")(release_cmd)
app.command(name="record-deployment", help="Record a deployed unit address.")(
    record_deployment_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
