"""Robot credential stores.

The provider treats the store as a black box that returns zero or more
candidates for a type-, scope- and identity-filtered search. Any store
implementing ``RobotCredentialStore`` can be plugged into a ``HostContext``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import structlog

from google_source_auth.credentials.base import Credential, RobotCredential
from google_source_auth.credentials.context import SYSTEM, ActingIdentity
from google_source_auth.credentials.keys import load_service_account_info
from google_source_auth.credentials.requirements import DomainRequirement, OAuthScopeRequirement
from google_source_auth.credentials.robot import ServiceAccountRobotCredential

if TYPE_CHECKING:
    from google_source_auth.config.settings import SourceAuthSettings

log = structlog.get_logger(__name__)

C = TypeVar("C", bound=Credential)


class RobotCredentialStore(Protocol):
    """Protocol for the outbound credential search."""

    def lookup_credentials(
        self,
        credential_type: type[C],
        item_scope: Any,
        acting_identity: ActingIdentity,
        domain_requirements: Sequence[DomainRequirement],
    ) -> list[C]:
        """Return credentials of ``credential_type`` satisfying the requirements.

        Args:
            credential_type: Credential class the caller can accept
            item_scope: Host item (folder, job) the lookup is made for
            acting_identity: Identity performing the lookup
            domain_requirements: Requirements every result must satisfy

        Returns:
            Matching credentials, in store order
        """
        ...


@dataclass(frozen=True)
class StoreEntry:
    """A robot credential and the OAuth scopes it may be used for.

    ``allowed_scopes`` of None means the robot is not restricted.
    """

    robot: RobotCredential
    allowed_scopes: frozenset[str] | None = None

    def permits(self, requirements: Iterable[DomainRequirement]) -> bool:
        if self.allowed_scopes is None:
            return True
        return all(
            requirement.scopes <= self.allowed_scopes
            for requirement in requirements
            if isinstance(requirement, OAuthScopeRequirement)
        )


class InMemoryCredentialStore:
    """Ordered, in-process robot credential store.

    Only the system identity sees any credential; item scope is not used to
    partition entries.

    Example:
        >>> store = InMemoryCredentialStore()
        >>> store.add(robot, scopes=[SOURCE_READ_WRITE_SCOPE])
        >>> context = HostContext(store)
    """

    def __init__(self, entries: Iterable[StoreEntry] = ()) -> None:
        self._entries: list[StoreEntry] = list(entries)

    @classmethod
    def from_settings(cls, settings: SourceAuthSettings) -> InMemoryCredentialStore:
        """Build a store holding the robots configured in settings.

        Raises:
            CredentialError: If a robot's key cannot be loaded
        """
        store = cls()
        for robot_config in settings.robots:
            info = load_service_account_info(robot_config.key.get_secret_value())
            robot = ServiceAccountRobotCredential.from_info(
                robot_config.id, info, description=robot_config.description
            )
            store.add(robot, scopes=robot_config.scopes)
        log.debug("credential_store_loaded", robots=len(store))
        return store

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, robot: RobotCredential, scopes: Iterable[str] | None = None) -> None:
        """Append a robot credential, replacing any entry with the same id."""
        self.remove(robot.id)
        allowed = frozenset(scopes) if scopes is not None else None
        self._entries.append(StoreEntry(robot, allowed))

    def remove(self, credential_id: str) -> bool:
        """Remove a robot credential.

        Returns:
            True if removed, False if not found
        """
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.robot.id != credential_id]
        return len(self._entries) != before

    def get_by_id(self, credential_id: str) -> RobotCredential | None:
        for entry in self._entries:
            if entry.robot.id == credential_id:
                return entry.robot
        return None

    def lookup_credentials(
        self,
        credential_type: type[C],
        item_scope: Any,
        acting_identity: ActingIdentity,
        domain_requirements: Sequence[DomainRequirement],
    ) -> list[C]:
        if acting_identity != SYSTEM:
            return []

        return [
            entry.robot
            for entry in self._entries
            if isinstance(entry.robot, credential_type) and entry.permits(domain_requirements)
        ]
