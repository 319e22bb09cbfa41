"""Loading of service-account key material.

A configured robot names its key in one of three ways:

1. ``@keyring:service/key`` - JSON key stored in the OS keyring
2. Inline JSON (``{"type": "service_account", ...}``), typically injected
   through ``${ENV_VAR}`` interpolation of the settings file
3. A path to a JSON key file

Keyring entries are namespaced under ``google-source-auth/`` to avoid
conflicts with other applications.
"""

import json
import re
from pathlib import Path
from typing import Any, cast

import keyring
import structlog
from keyring.backends.fail import Keyring as FailKeyring
from keyring.errors import KeyringError, PasswordDeleteError

from google_source_auth.exceptions import (
    CredentialError,
    CredentialFormatError,
    CredentialUnavailableError,
)

log = structlog.get_logger(__name__)

KEYRING_NAMESPACE = "google-source-auth"
KEYRING_PATTERN = re.compile(r"^@keyring:([^/]+)/(.+)$")


def _keyring_service(service: str) -> str:
    return f"{KEYRING_NAMESPACE}/{service}"


def _reference(service: str, key: str) -> str:
    return f"@keyring:{service}/{key}"


class KeyringBackend:
    """Service-account keys stored in the OS keyring.

    Entries live under ``google-source-auth/<service>`` so they never collide
    with other applications using the same keyring.

    Example:
        >>> backend = KeyringBackend()
        >>> backend.set("google-source", "ci-robot", key_json)
        >>> backend.get("google-source", "ci-robot")
        >>> backend.delete("google-source", "ci-robot")
    """

    @property
    def name(self) -> str:
        return "keyring"

    @property
    def available(self) -> bool:
        """False when keyring only found its fail backend (headless systems)."""
        try:
            return not isinstance(keyring.get_keyring(), FailKeyring)
        except KeyringError as e:
            log.debug("keyring_unavailable", error=str(e))
            return False

    def _require_available(self, reference: str) -> None:
        if not self.available:
            raise CredentialUnavailableError(
                "Keyring backend is not available",
                reference=reference,
                suggestion="Configure a keyring backend, or give the robot a key file path instead",
            )

    def get(self, service: str, key: str) -> str:
        """Read raw key JSON.

        Raises:
            CredentialUnavailableError: If no such entry exists or no keyring is available
            CredentialError: If the keyring backend fails
        """
        reference = _reference(service, key)
        self._require_available(reference)
        try:
            value = cast(str | None, keyring.get_password(_keyring_service(service), key))
        except KeyringError as e:
            raise CredentialError(f"Keyring operation failed: {e}", reference=reference) from e

        if value is None:
            raise CredentialUnavailableError(
                f"Key not found in keyring: {service}/{key}",
                reference=reference,
                suggestion=f"Store the key with:\n  google-source-auth keys set {service}/{key} KEY_FILE",
            )

        log.debug("key_read_from_keyring", service=service, key=key)
        return value

    def set(self, service: str, key: str, value: str) -> None:
        """Store raw key JSON after checking it parses."""
        reference = _reference(service, key)
        parse_key_json(value, reference=reference)
        self._require_available(reference)
        try:
            keyring.set_password(_keyring_service(service), key, value)
        except KeyringError as e:
            raise CredentialError(f"Failed to store key: {e}", reference=reference) from e
        log.info("key_stored_in_keyring", service=service, key=key)

    def delete(self, service: str, key: str) -> bool:
        """Remove key JSON.

        Returns:
            True if deleted, False if there was no such entry
        """
        reference = _reference(service, key)
        self._require_available(reference)
        try:
            keyring.delete_password(_keyring_service(service), key)
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            raise CredentialError(f"Failed to delete key: {e}", reference=reference) from e
        log.info("key_deleted_from_keyring", service=service, key=key)
        return True


def parse_key_json(raw: str, reference: str | None = None) -> dict[str, Any]:
    """Parse service-account key JSON.

    Raises:
        CredentialFormatError: If the text is not a JSON object
    """
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CredentialFormatError(
            "Service account key is not valid JSON",
            reference=reference,
            suggestion="Use the JSON key downloaded from the Cloud console",
        ) from e

    if not isinstance(info, dict):
        raise CredentialFormatError(
            "Service account key must be a JSON object", reference=reference
        )
    return info


def load_service_account_info(source: str, backend: KeyringBackend | None = None) -> dict[str, Any]:
    """Resolve a key source to parsed service-account key JSON.

    Args:
        source: ``@keyring:service/key`` reference, inline JSON or file path
        backend: Keyring backend for ``@keyring:`` references

    Returns:
        Parsed key dictionary, ready for google-auth

    Raises:
        CredentialUnavailableError: If the keyring entry or file is missing
        CredentialFormatError: If the key is not a JSON object
    """
    source = source.strip()

    keyring_match = KEYRING_PATTERN.match(source)
    if keyring_match:
        raw = (backend or KeyringBackend()).get(keyring_match.group(1), keyring_match.group(2))
        return parse_key_json(raw, reference=source)

    if source.startswith("{"):
        return parse_key_json(source, reference="<inline key>")

    path = Path(source).expanduser()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CredentialUnavailableError(
            f"Key file not found: {path}", reference=str(path)
        ) from e
    except OSError as e:
        raise CredentialError(f"Cannot read key file: {e}", reference=str(path)) from e

    return parse_key_json(raw, reference=str(path))
