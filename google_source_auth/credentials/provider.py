"""Provider exposing robot credentials as username/password credentials.

Source-control clients only understand username/password pairs. For each
strategy whose domain fits the caller's requirements, the provider looks up
the robot credentials allowed to mint that strategy's OAuth scope and wraps
each in a ``LiveCredential``. This happens in two steps of domain protection:
credentials are never suggested for a context their strategy does not serve,
and a robot is only wrapped for a strategy if the store agrees it may be used
for that strategy's scope.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import structlog

from google_source_auth.credentials.base import Credential, RobotCredential
from google_source_auth.credentials.context import SYSTEM, ActingIdentity, HostContext
from google_source_auth.credentials.requirements import DomainRequirement
from google_source_auth.credentials.strategy import Strategy, StrategyRegistry
from google_source_auth.credentials.translated import LiveCredential

log = structlog.get_logger(__name__)

CredentialFactory = Callable[[str, Strategy, HostContext], LiveCredential]


class SourceCredentialProvider:
    """Derives Google Source username/password credentials from robot credentials.

    Example:
        >>> provider = SourceCredentialProvider(HostContext(store))
        >>> creds = provider.lookup(
        ...     UsernamePasswordCredential,
        ...     domain_requirements=requirements_for_url("https://source.developers.google.com/p/x"),
        ... )
        >>> [c.id for c in creds]
        ['source:ci-robot']
    """

    def __init__(
        self,
        context: HostContext,
        registry: StrategyRegistry | None = None,
        credential_factory: CredentialFactory | None = None,
    ) -> None:
        """Initialize provider.

        Args:
            context: Context holding the robot credential store
            registry: Strategies to offer, defaults to GERRIT then CLOUD_PLATFORM
            credential_factory: Builds the translated credential for a robot id
                and strategy, defaults to ``LiveCredential``
        """
        self.context = context
        self.registry = registry or StrategyRegistry.default()
        self._factory: CredentialFactory = credential_factory or LiveCredential

    def lookup(
        self,
        requested_type: type[Credential],
        item_scope: Any = None,
        acting_identity: ActingIdentity = SYSTEM,
        domain_requirements: Sequence[DomainRequirement] = (),
    ) -> list[LiveCredential]:
        """Return the translated credentials available for the requirements.

        Args:
            requested_type: Credential class the caller can accept
            item_scope: Host item the lookup is made for, passed to the store
            acting_identity: Only the system identity is served
            domain_requirements: Context the credential must be valid for

        Returns:
            Translated credentials in strategy order, then store order.
            The same robot may appear once per matching strategy.
        """
        if acting_identity != SYSTEM:
            return []

        # Only translated credentials are produced here, never the robots they wrap.
        if not issubclass(LiveCredential, requested_type):
            return []

        store = self.context.store
        if store is None:
            return []

        domain_requirements = list(domain_requirements)
        derived: list[LiveCredential] = []
        for strategy in self.registry:
            if not strategy.matches(domain_requirements):
                log.debug("strategy_skipped", strategy=strategy.name)
                continue

            robots = store.lookup_credentials(RobotCredential, item_scope, SYSTEM, [strategy.scope])
            for robot in robots:
                derived.append(self._factory(robot.id, strategy, self.context))

        log.debug("credentials_derived", count=len(derived))
        return derived
