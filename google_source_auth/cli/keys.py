"""CLI commands for service-account keys kept in the OS keyring.

Robots configured with ``key: "@keyring:service/key"`` read their JSON key
from the keyring entry written here.

Example:
    Store and remove a key::

        $ google-source-auth keys set google-source/ci-robot ci-robot.json
        $ google-source-auth keys delete google-source/ci-robot
"""

import sys

import click

from google_source_auth.cli.common import report_error
from google_source_auth.credentials.keys import KeyringBackend
from google_source_auth.exceptions import CredentialError


def _parse_service_key(reference: str) -> tuple[str, str]:
    """Split a "service/key" reference.

    Raises:
        click.BadParameter: If the reference has no slash separator
    """
    service, sep, key = reference.partition("/")
    if not sep or not service or not key:
        raise click.BadParameter(
            f"Invalid reference format: {reference}\nExpected format: service/key (e.g., google-source/ci-robot)"
        )
    return service, key


@click.group(name="keys")
def keys_group():
    """Manage service-account keys stored in the OS keyring."""
    pass


@keys_group.command(name="set")
@click.argument("reference")
@click.argument("key_file", type=click.File("r"))
def set_key(reference: str, key_file) -> None:
    """Store the JSON key in KEY_FILE under REFERENCE (service/key).

    Use "-" as KEY_FILE to read the key from stdin.
    """
    service, key = _parse_service_key(reference)
    try:
        KeyringBackend().set(service, key, key_file.read())
    except CredentialError as e:
        report_error(e)
        sys.exit(1)

    click.echo(f"Stored in keyring: {service}/{key}")
    click.echo(f"Reference: @keyring:{service}/{key}")
    click.echo(click.style("Key stored successfully", fg="green"))


@keys_group.command(name="delete")
@click.argument("reference")
def delete_key(reference: str) -> None:
    """Remove the key stored under REFERENCE (service/key)."""
    service, key = _parse_service_key(reference)
    try:
        deleted = KeyringBackend().delete(service, key)
    except CredentialError as e:
        report_error(e)
        sys.exit(1)

    if deleted:
        click.echo(click.style("Key deleted successfully", fg="green"))
    else:
        click.echo(click.style("Key not found", fg="yellow"))
