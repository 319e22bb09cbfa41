"""The host environment handed explicitly to every component that looks up credentials.

A ``HostContext`` with a store is the primary host; ``HostContext.agent()`` is
a build worker that cannot reach the credential store. Components never reach
for a global host instance: "no store" is simply ``store is None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from google_source_auth.credentials.base import RobotCredential

if TYPE_CHECKING:
    from google_source_auth.credentials.store import RobotCredentialStore

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ActingIdentity:
    """Identity on whose behalf a lookup is performed."""

    name: str


SYSTEM = ActingIdentity("SYSTEM")
ANONYMOUS = ActingIdentity("anonymous")


@dataclass(frozen=True)
class HostContext:
    """Execution context of a credential operation.

    Attributes:
        store: Robot credential store, or None on a build worker
        name: Label used in logs
    """

    store: RobotCredentialStore | None
    name: str = "host"

    @classmethod
    def agent(cls, name: str = "agent") -> HostContext:
        """Context of a worker with no access to the credential store."""
        return cls(store=None, name=name)

    @property
    def has_store_access(self) -> bool:
        return self.store is not None

    def get_robot(self, credential_id: str) -> RobotCredential | None:
        """Find a robot credential by id.

        Returns:
            The robot credential, or None when it is gone or the context has
            no store access
        """
        if self.store is None:
            return None

        for robot in self.store.lookup_credentials(RobotCredential, None, SYSTEM, ()):
            if robot.id == credential_id:
                return robot

        log.debug("robot_credential_not_found", credential_id=credential_id, context=self.name)
        return None
