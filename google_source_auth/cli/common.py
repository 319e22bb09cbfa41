"""Helpers shared by the CLI commands."""

import click
import structlog

from google_source_auth.config.settings import SourceAuthSettings
from google_source_auth.credentials import HostContext, InMemoryCredentialStore, SourceCredentialProvider
from google_source_auth.exceptions import CredentialError, GoogleSourceAuthError

log = structlog.get_logger(__name__)


def build_provider(settings: SourceAuthSettings) -> SourceCredentialProvider:
    """Create a provider over the robots configured in settings.

    Raises:
        CredentialError: If a robot's key cannot be loaded
    """
    store = InMemoryCredentialStore.from_settings(settings)
    return SourceCredentialProvider(HostContext(store))


def report_error(error: GoogleSourceAuthError) -> None:
    """Print an error (and its suggestion, if any) to stderr."""
    click.echo(click.style(f"Error: {error.message}", fg="red"), err=True)
    if isinstance(error, CredentialError) and error.suggestion:
        click.echo(click.style(f"Suggestion: {error.suggestion}", fg="yellow"), err=True)
    log.debug("command_failed", error_type=type(error).__name__, exc_info=True)


def mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "*" * (len(value) - 8) + value[-4:]
    return "*" * len(value)
