"""Robot credentials backed by Google service accounts.

``ServiceAccountRobotCredential`` mints tokens with google-auth on the host
that owns the key. ``RemoteRobotCredential`` is what travels to a build
worker: the token has already been minted, so the worker never sees the key.

Example:
    >>> robot = ServiceAccountRobotCredential.from_info("ci-robot", key_info)
    >>> token = robot.access_token(Strategy.CLOUD_PLATFORM.scope)
    >>> remote = robot.for_remote(Strategy.CLOUD_PLATFORM.scope)
    >>> remote.access_token(Strategy.CLOUD_PLATFORM.scope) == token
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from pydantic import SecretStr

from google_source_auth.credentials.base import RobotCredential
from google_source_auth.credentials.requirements import OAuthScopeRequirement
from google_source_auth.exceptions import AuthenticationFailureError, CredentialFormatError

log = structlog.get_logger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # google-auth reports naive UTC expiry times
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class ServiceAccountRobotCredential(RobotCredential):
    """Robot credential holding a service-account key.

    Scoped google-auth credentials are kept per scope set and refreshed only
    when their token is no longer valid.

    Attributes:
        credential_id: Id under which the credential is stored
    """

    def __init__(
        self,
        credential_id: str,
        credentials: service_account.Credentials,
        description: str | None = None,
    ) -> None:
        """Initialize robot credential.

        Args:
            credential_id: Id under which the credential is stored
            credentials: Unscoped google-auth service-account credentials
            description: Optional human-readable description
        """
        self.credential_id = credential_id
        self._credentials = credentials
        self._description = description
        self._scoped: dict[frozenset[str], service_account.Credentials] = {}

    @classmethod
    def from_info(
        cls,
        credential_id: str,
        info: dict[str, Any],
        description: str | None = None,
    ) -> ServiceAccountRobotCredential:
        """Build a robot credential from parsed service-account key JSON.

        Raises:
            CredentialFormatError: If google-auth rejects the key
        """
        try:
            credentials = service_account.Credentials.from_service_account_info(info)
        except (ValueError, KeyError) as e:
            raise CredentialFormatError(
                f"Invalid service account key: {e}",
                reference=credential_id,
                suggestion="Download a fresh JSON key for the service account",
            ) from e
        return cls(credential_id, credentials, description)

    @property
    def id(self) -> str:
        return self.credential_id

    @property
    def username(self) -> str:
        return self._credentials.service_account_email

    @property
    def description(self) -> str:
        return self._description or self.username

    def _scoped_credentials(self, scope: OAuthScopeRequirement) -> service_account.Credentials:
        scoped = self._scoped.get(scope.scopes)
        if scoped is None:
            scoped = self._credentials.with_scopes(sorted(scope.scopes))
            self._scoped[scope.scopes] = scoped
        return scoped

    def _refreshed(self, scope: OAuthScopeRequirement) -> service_account.Credentials:
        scoped = self._scoped_credentials(scope)
        if scoped.valid:
            return scoped

        try:
            scoped.refresh(Request())
        except google_auth_exceptions.GoogleAuthError as e:
            log.warning("token_refresh_failed", credential_id=self.credential_id, error=str(e))
            raise AuthenticationFailureError(
                f"Failed to obtain access token: {e}",
                reference=self.credential_id,
            ) from e

        log.debug(
            "token_refreshed",
            credential_id=self.credential_id,
            scopes=sorted(scope.scopes),
        )
        return scoped

    def access_token(self, scope: OAuthScopeRequirement) -> SecretStr:
        return SecretStr(self._refreshed(scope).token)

    def for_remote(self, scope: OAuthScopeRequirement) -> RemoteRobotCredential:
        scoped = self._refreshed(scope)
        return RemoteRobotCredential(
            credential_id=self.credential_id,
            robot_username=self.username,
            scope=scope,
            token=SecretStr(scoped.token),
            expiry=_as_utc(scoped.expiry),
        )


@dataclass(frozen=True)
class RemoteRobotCredential(RobotCredential):
    """A robot credential reduced to one already-minted access token.

    Attributes:
        credential_id: Id of the robot credential it was taken from
        robot_username: Account identifier of that robot
        scope: Scope the token was minted for
        token: The access token
        expiry: When the token stops being valid (None if unknown)
    """

    credential_id: str
    robot_username: str
    scope: OAuthScopeRequirement
    token: SecretStr
    expiry: datetime | None = None

    @property
    def id(self) -> str:
        return self.credential_id

    @property
    def username(self) -> str:
        return self.robot_username

    @property
    def expired(self) -> bool:
        return self.expiry is not None and datetime.now(UTC) >= self.expiry

    def access_token(self, scope: OAuthScopeRequirement) -> SecretStr:
        if not scope.scopes <= self.scope.scopes:
            raise AuthenticationFailureError(
                "Remote credential was not issued for the requested scopes",
                reference=self.credential_id,
                suggestion=f"Requested {sorted(scope.scopes)}, have {sorted(self.scope.scopes)}",
            )
        if self.expired:
            raise AuthenticationFailureError(
                f"Remote access token expired at {self.expiry.isoformat()}",
                reference=self.credential_id,
            )
        return self.token

    def for_remote(self, scope: OAuthScopeRequirement) -> RemoteRobotCredential:
        return self
