"""Username/password credentials translated from robot credentials.

A translated credential has exactly one of two forms:

* ``LiveCredential`` holds only the robot credential id and the strategy,
  and resolves the robot through its ``HostContext`` on every call, so
  revocation and key rotation are always honoured.
* ``SnapshotCredential`` holds an identity computed once and a robot
  credential that already works away from the store. It never performs a
  store lookup.

``snapshot()`` is the only transition. It is one-way. A live credential keeps
the first snapshot taken from it and hands it out again, and applying it to a
snapshot returns that same snapshot, so repeated hand-offs between execution
contexts never nest wrappers.

Example:
    >>> live = LiveCredential("ci-robot", Strategy.GERRIT, context)
    >>> live.username()
    'git'
    >>> remote = snapshot(live)
    >>> snapshot(remote) is remote
    True
    >>> snapshot(live) is remote
    True
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import ClassVar, Literal

import structlog
from pydantic import SecretStr

from google_source_auth.credentials.base import RobotCredential, UsernamePasswordCredential
from google_source_auth.credentials.context import HostContext
from google_source_auth.credentials.requirements import DomainRequirement
from google_source_auth.credentials.strategy import Strategy, identity_for
from google_source_auth.exceptions import CredentialUnavailableError

log = structlog.get_logger(__name__)

ID_PREFIX = "source:"


def _require(robot: RobotCredential | None, credential_id: str | None) -> RobotCredential:
    if robot is None:
        raise CredentialUnavailableError(
            "Robot credential is no longer available",
            reference=credential_id,
            suggestion="Check that the robot credential still exists in the credential store",
        )
    return robot


def identity(strategy: Strategy, robot: RobotCredential | None, credential_id: str | None = None) -> str:
    """Login name for ``robot`` under ``strategy``.

    Raises:
        CredentialUnavailableError: If ``robot`` is None
    """
    return identity_for(strategy, _require(robot, credential_id))


def token(strategy: Strategy, robot: RobotCredential | None, credential_id: str | None = None) -> SecretStr:
    """Access token from ``robot`` scoped to the strategy.

    Raises:
        CredentialUnavailableError: If ``robot`` is None
        AuthenticationFailureError: If the token cannot be obtained
    """
    return _require(robot, credential_id).access_token(strategy.scope)


@dataclass(frozen=True)
class LiveCredential(UsernamePasswordCredential):
    """Translated credential that re-resolves its robot on every use.

    Attributes:
        credential_id: Id of the wrapped robot credential
        strategy: Strategy deciding login name and scope
        context: Context the robot is resolved in
    """

    kind: ClassVar[Literal["live"]] = "live"

    credential_id: str
    strategy: Strategy
    context: HostContext
    _snapshot: SnapshotCredential | None = field(default=None, init=False, compare=False, repr=False)

    @property
    def id(self) -> str:
        return ID_PREFIX + self.credential_id

    def robot(self) -> RobotCredential | None:
        return self.context.get_robot(self.credential_id)

    def username(self) -> str:
        return identity(self.strategy, self.robot(), self.credential_id)

    def password(self) -> SecretStr:
        return token(self.strategy, self.robot(), self.credential_id)

    def description(self) -> str:
        robot = self.robot()
        return "" if robot is None else robot.description

    def matches(self, requirements: Iterable[DomainRequirement]) -> bool:
        return self.strategy.matches(requirements)


@dataclass(frozen=True)
class SnapshotCredential(UsernamePasswordCredential):
    """Translated credential frozen for use away from the credential store.

    Attributes:
        credential_id: Id of the robot credential it was taken from
        strategy: Strategy deciding login name and scope
        identity: Login name computed when the snapshot was taken
        remote: Robot credential usable without the store
    """

    kind: ClassVar[Literal["snapshot"]] = "snapshot"

    credential_id: str
    strategy: Strategy
    identity: str
    remote: RobotCredential

    @property
    def id(self) -> str:
        return ID_PREFIX + self.credential_id

    def username(self) -> str:
        return self.identity

    def password(self) -> SecretStr:
        return self.remote.access_token(self.strategy.scope)

    def description(self) -> str:
        return ""

    def matches(self, requirements: Iterable[DomainRequirement]) -> bool:
        return self.strategy.matches(requirements)


TranslatedCredential = LiveCredential | SnapshotCredential


def snapshot_of(strategy: Strategy, robot: RobotCredential | None, credential_id: str) -> SnapshotCredential:
    """Capture identity and a remote-capable robot for ``strategy`` now.

    Raises:
        CredentialUnavailableError: If ``robot`` is None
        AuthenticationFailureError: If the robot cannot produce a remote variant
    """
    robot = _require(robot, credential_id)
    captured = SnapshotCredential(
        credential_id=credential_id,
        strategy=strategy,
        identity=identity_for(strategy, robot),
        remote=robot.for_remote(strategy.scope),
    )
    log.debug("credential_snapshot_taken", credential_id=credential_id, strategy=strategy.name)
    return captured


def snapshot(credential: TranslatedCredential) -> SnapshotCredential:
    """Move a translated credential to its snapshot form.

    Returns the credential itself when it already is a snapshot. A live
    credential is snapshotted once; later calls return that same snapshot
    while the live credential keeps re-resolving its robot for its own use.
    """
    if isinstance(credential, SnapshotCredential):
        return credential

    # Write-once; a racing first call stores an equivalent snapshot.
    if credential._snapshot is None:
        captured = snapshot_of(credential.strategy, credential.robot(), credential.credential_id)
        object.__setattr__(credential, "_snapshot", captured)
    return credential._snapshot


def display_name(credential: UsernamePasswordCredential) -> str:
    """Name shown when credentials are listed to a user."""
    return f"Google Source credential for {credential.description()}"
