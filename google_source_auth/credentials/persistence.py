"""Wire and disk form of translated credentials.

A translated credential is written as ``(credential_id, strategy,
module_state)``. The module state carries the snapshot (identity plus the
minted remote token) so that a reader without store access can use the
credential as-is. A reader with store access ignores it and gets a live
credential back, which re-resolves the robot and so honours rotation.
"""

from __future__ import annotations

from datetime import datetime

import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_serializer

from google_source_auth.credentials.context import HostContext
from google_source_auth.credentials.requirements import OAuthScopeRequirement
from google_source_auth.credentials.robot import RemoteRobotCredential
from google_source_auth.credentials.strategy import Strategy
from google_source_auth.credentials.translated import (
    LiveCredential,
    SnapshotCredential,
    TranslatedCredential,
    snapshot,
)
from google_source_auth.exceptions import CredentialFormatError

log = structlog.get_logger(__name__)


class RemoteState(BaseModel):
    """Serialized ``RemoteRobotCredential``."""

    model_config = ConfigDict(frozen=True)

    credential_id: str
    username: str
    scopes: list[str]
    token: SecretStr
    expiry: datetime | None = None

    @field_serializer("token", when_used="json")
    def _reveal_token(self, value: SecretStr) -> str:
        return value.get_secret_value()


class SnapshotState(BaseModel):
    """Module state of a snapshot credential."""

    model_config = ConfigDict(frozen=True)

    identity: str
    remote: RemoteState


class PersistedCredential(BaseModel):
    """Serialized translated credential."""

    model_config = ConfigDict(frozen=True)

    credential_id: str
    strategy: str
    module_state: SnapshotState | None = Field(default=None)


def _remote_state(remote: object, credential_id: str) -> RemoteState:
    if not isinstance(remote, RemoteRobotCredential):
        raise CredentialFormatError(
            f"Cannot serialize remote credential of type {type(remote).__name__}",
            reference=credential_id,
        )
    return RemoteState(
        credential_id=remote.credential_id,
        username=remote.robot_username,
        scopes=sorted(remote.scope.scopes),
        token=remote.token,
        expiry=remote.expiry,
    )


def to_persisted(credential: TranslatedCredential, for_remote: bool = True) -> PersistedCredential:
    """Build the serializable form of a translated credential.

    Args:
        credential: Credential to serialize
        for_remote: Embed the snapshot state. Live credentials are snapshotted
            in their own context for this, which mints a token.

    Raises:
        CredentialUnavailableError: If a live credential's robot is gone
        AuthenticationFailureError: If the remote token cannot be minted
        CredentialFormatError: If the remote credential is not serializable
    """
    module_state = None
    if for_remote or isinstance(credential, SnapshotCredential):
        captured = snapshot(credential)
        module_state = SnapshotState(
            identity=captured.identity,
            remote=_remote_state(captured.remote, captured.credential_id),
        )

    return PersistedCredential(
        credential_id=credential.credential_id,
        strategy=credential.strategy.name,
        module_state=module_state,
    )


def dump_credential(credential: TranslatedCredential, for_remote: bool = True) -> str:
    """Serialize a translated credential to JSON."""
    payload = to_persisted(credential, for_remote=for_remote).model_dump_json()
    log.debug(
        "credential_serialized",
        credential_id=credential.credential_id,
        kind=credential.kind,
        with_state=for_remote or credential.kind == "snapshot",
    )
    return payload


def from_persisted(persisted: PersistedCredential, context: HostContext) -> TranslatedCredential:
    """Rebuild a translated credential in ``context``.

    Raises:
        CredentialFormatError: If the strategy is unknown, or the context has
            no store access and the payload carries no snapshot state
    """
    strategy = Strategy.from_name(persisted.strategy)

    if context.has_store_access:
        return LiveCredential(persisted.credential_id, strategy, context)

    state = persisted.module_state
    if state is None:
        raise CredentialFormatError(
            "Credential has no snapshot state and the credential store is not reachable",
            reference=persisted.credential_id,
            suggestion="Serialize the credential with for_remote=True before sending it to a worker",
        )

    remote = RemoteRobotCredential(
        credential_id=state.remote.credential_id,
        robot_username=state.remote.username,
        scope=OAuthScopeRequirement(frozenset(state.remote.scopes)),
        token=state.remote.token,
        expiry=state.remote.expiry,
    )
    return SnapshotCredential(
        credential_id=persisted.credential_id,
        strategy=strategy,
        identity=state.identity,
        remote=remote,
    )


def load_credential(payload: str | bytes, context: HostContext) -> TranslatedCredential:
    """Deserialize a translated credential from JSON.

    Raises:
        CredentialFormatError: If the payload is malformed
    """
    try:
        persisted = PersistedCredential.model_validate_json(payload)
    except ValidationError as e:
        raise CredentialFormatError(f"Invalid persisted credential: {e}") from e
    return from_persisted(persisted, context)
