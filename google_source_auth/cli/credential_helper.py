"""Git credential helper backed by the configured robot credentials.

Configure git to call it for Google-hosted repositories::

    git config --global credential.https://source.developers.google.com.helper \
        "!google-source-auth --config /etc/google-source-auth.yaml credential-helper"

Git writes ``key=value`` lines (``protocol``, ``host``, ``path``...) to stdin,
terminated by a blank line or EOF. For ``get`` the helper answers with
``username=`` and ``password=`` lines from the first credential offered, or
prints nothing so git moves on to its next helper. ``store`` and ``erase`` are
accepted and ignored: tokens are minted on demand and never cached here.
"""

import sys
from typing import TextIO

import click
import structlog

from google_source_auth.cli.common import build_provider, report_error
from google_source_auth.credentials import (
    HostnameRequirement,
    SchemeRequirement,
    UsernamePasswordCredential,
)
from google_source_auth.exceptions import GoogleSourceAuthError

log = structlog.get_logger(__name__)


def read_request(stream: TextIO) -> dict[str, str]:
    """Parse the attributes git sends, up to the first blank line."""
    attributes: dict[str, str] = {}
    for line in stream:
        line = line.strip()
        if not line:
            break
        name, sep, value = line.partition("=")
        if sep:
            attributes[name] = value
    return attributes


@click.command(name="credential-helper")
@click.argument("operation", type=click.Choice(["get", "store", "erase"]))
@click.pass_context
def credential_helper_command(ctx: click.Context, operation: str) -> None:
    """Answer a git credential helper OPERATION (get, store or erase)."""
    request = read_request(click.get_text_stream("stdin"))
    protocol = request.get("protocol", "")
    host = request.get("host", "")
    log.debug("credential_helper_called", operation=operation, protocol=protocol, host=host)

    if operation != "get" or not protocol or not host:
        return

    # git sends host[:port]
    hostname = host.rsplit(":", 1)[0] if ":" in host else host
    requirements = [SchemeRequirement(protocol.lower()), HostnameRequirement(hostname.lower())]

    try:
        provider = build_provider(ctx.obj["settings"])
        credentials = provider.lookup(UsernamePasswordCredential, domain_requirements=requirements)
        if not credentials:
            log.info("no_credential_for_host", protocol=protocol, host=host)
            return

        credential = credentials[0]
        username = credential.username()
        password = credential.password().get_secret_value()
    except GoogleSourceAuthError as e:
        report_error(e)
        sys.exit(1)

    log.info("credential_supplied", credential_id=credential.id, host=host)
    click.echo(f"username={username}")
    click.echo(f"password={password}")
