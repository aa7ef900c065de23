"""Helpers shared by CLI commands: settings, client wiring, error exits."""

from __future__ import annotations

from typing import NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from buildvault.config import VaultSettings, configure_logging
from buildvault.core.client import ArtifactStoreClient
from buildvault.core.errors import BuildVaultError, TagExistsError
from buildvault.storage import create_provider

console = Console()

EXIT_FAILURE = 1
EXIT_TAG_EXISTS = 3


def load_settings(project: str | None = None) -> VaultSettings:
    """Read settings, exiting with a failure code if they do not validate."""
    overrides = {"project": project} if project else {}
    try:
        settings = VaultSettings(**overrides)
    except ValidationError as exc:
        fail(exc)
    configure_logging(settings.log_level)
    return settings


def build_client(settings: VaultSettings) -> ArtifactStoreClient:
    try:
        provider = create_provider(settings.storage_config(), settings.retry_config())
    except (ValidationError, BuildVaultError) as exc:
        fail(exc)
    return ArtifactStoreClient(provider, cache_dir=settings.cache_path)


def fail(exc: Exception) -> NoReturn:
    """Print *exc* and exit with a code that tells its kind apart."""
    console.print(f"[bold red]{type(exc).__name__}:[/bold red] {escape(str(exc))}")
    code = EXIT_TAG_EXISTS if isinstance(exc, TagExistsError) else EXIT_FAILURE
    raise typer.Exit(code=code)
