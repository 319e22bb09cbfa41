"""CLI entry point for google-source-auth."""

import sys

import click
import structlog

from google_source_auth.cli.common import build_provider, mask, report_error
from google_source_auth.cli.credential_helper import credential_helper_command
from google_source_auth.cli.keys import keys_group
from google_source_auth.config.settings import SourceAuthSettings
from google_source_auth.credentials import UsernamePasswordCredential, display_name, requirements_for_url
from google_source_auth.exceptions import ConfigurationError, GoogleSourceAuthError
from google_source_auth.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    envvar="GOOGLE_SOURCE_AUTH_CONFIG",
    default=None,
    help="Path to configuration file (settings come from the environment when omitted)",
)
@click.option("--log-level", default=None, help="Logging level (overrides the configured one)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """google-source-auth: OAuth credentials for Google-hosted git repositories."""
    # keys manages the keyring directly and needs no robots
    if ctx.invoked_subcommand == "keys":
        configure_logging(log_level or "INFO")
        ctx.obj = {"settings": None}
        return

    try:
        settings = SourceAuthSettings.from_yaml(config) if config else SourceAuthSettings()
    except ConfigurationError as e:
        configure_logging(log_level or "INFO")
        report_error(e)
        sys.exit(1)
    except ValueError as e:
        click.echo(click.style(f"Error: Invalid settings in environment: {e}", fg="red"), err=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level, json_output=settings.json_logs)
    log.debug("settings_loaded", config=config, robots=len(settings.robots))
    ctx.obj = {"settings": settings}


@cli.command()
@click.argument("url")
@click.option("--show-token", is_flag=True, help="Print the access token of each credential")
@click.pass_context
def lookup(ctx: click.Context, url: str, show_token: bool) -> None:
    """List the credentials offered for a repository URL."""
    try:
        requirements = requirements_for_url(url)
        provider = build_provider(ctx.obj["settings"])
        credentials = provider.lookup(UsernamePasswordCredential, domain_requirements=requirements)

        if not credentials:
            click.echo(click.style(f"No credentials available for {url}", fg="yellow"))
            return

        for credential in credentials:
            click.echo(click.style(display_name(credential), bold=True))
            click.echo(f"  Id: {credential.id}")
            click.echo(f"  Strategy: {credential.strategy.name}")
            click.echo(f"  Username: {credential.username()}")
            token = credential.password().get_secret_value()
            click.echo(f"  Token: {token if show_token else mask(token)}")

        if not show_token:
            click.echo(click.style("Use --show-token to display full tokens", fg="yellow"))
    except GoogleSourceAuthError as e:
        report_error(e)
        sys.exit(1)


cli.add_command(credential_helper_command)
cli.add_command(keys_group)


if __name__ == "__main__":
    cli()
