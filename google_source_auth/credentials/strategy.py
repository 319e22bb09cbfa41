"""Strategies binding a source-hosting domain to an OAuth scope and a login rule.

Two strategies exist and are part of the external contract:

* ``GERRIT``: https on ``*.googlesource.com``, scope ``gerritcodereview``,
  login name is always ``"git"``.
* ``CLOUD_PLATFORM``: https on ``code.google.com`` and
  ``source.developers.google.com``, scope ``source.read_write``, login name is
  the robot credential's own account name.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from google_source_auth.credentials.requirements import (
    DomainPattern,
    DomainRequirement,
    OAuthScopeRequirement,
)
from google_source_auth.exceptions import CredentialFormatError

if TYPE_CHECKING:
    from google_source_auth.credentials.base import RobotCredential

GERRIT_SCOPE = "https://www.googleapis.com/auth/gerritcodereview"
SOURCE_READ_WRITE_SCOPE = "https://www.googleapis.com/auth/source.read_write"

GERRIT_IDENTITY = "git"


class IdentityRule(str, Enum):
    """How a strategy derives the login name from a robot credential."""

    FIXED_GIT = "fixed-git"
    ROBOT_USERNAME = "robot-username"


@dataclass(frozen=True)
class StrategySpec:
    """Data carried by each ``Strategy`` member."""

    domain: DomainPattern
    scope: OAuthScopeRequirement
    identity_rule: IdentityRule


class Strategy(Enum):
    """Strategy for choosing the login name based on the repository domain."""

    GERRIT = StrategySpec(
        domain=DomainPattern(
            name="gerrit",
            schemes=frozenset({"https"}),
            host_globs=("*.googlesource.com",),
        ),
        scope=OAuthScopeRequirement.of(GERRIT_SCOPE),
        identity_rule=IdentityRule.FIXED_GIT,
    )
    CLOUD_PLATFORM = StrategySpec(
        domain=DomainPattern(
            name="cloud_platform",
            schemes=frozenset({"https"}),
            host_globs=("code.google.com", "source.developers.google.com"),
        ),
        scope=OAuthScopeRequirement.of(SOURCE_READ_WRITE_SCOPE),
        identity_rule=IdentityRule.ROBOT_USERNAME,
    )

    @property
    def domain(self) -> DomainPattern:
        return self.value.domain

    @property
    def scope(self) -> OAuthScopeRequirement:
        return self.value.scope

    @property
    def identity_rule(self) -> IdentityRule:
        return self.value.identity_rule

    def matches(self, requirements: Iterable[DomainRequirement]) -> bool:
        """Whether the strategy can be applied to the given requirements."""
        return self.domain.matches(requirements)

    @classmethod
    def from_name(cls, name: str) -> Strategy:
        """Resolve a persisted strategy name.

        Raises:
            CredentialFormatError: If no strategy has that name
        """
        try:
            return cls[name]
        except KeyError:
            raise CredentialFormatError(
                f"Unknown strategy: {name}",
                suggestion=f"Expected one of: {', '.join(s.name for s in cls)}",
            ) from None


def identity_for(strategy: Strategy, robot: RobotCredential) -> str:
    """Return the login name a strategy derives from a robot credential."""
    rule = strategy.identity_rule
    if rule is IdentityRule.FIXED_GIT:
        return GERRIT_IDENTITY
    if rule is IdentityRule.ROBOT_USERNAME:
        return robot.username
    raise AssertionError(f"Unhandled identity rule: {rule}")


class StrategyRegistry:
    """Ordered, immutable collection of strategies.

    The registry is built by the embedding application and handed to the
    provider; ``StrategyRegistry.default()`` holds the two fixed strategies.

    Example:
        >>> registry = StrategyRegistry.default()
        >>> registry.first_matching(requirements_for_url("https://a.googlesource.com/x"))
        <Strategy.GERRIT: ...>
    """

    def __init__(self, strategies: Sequence[Strategy]) -> None:
        self._strategies: tuple[Strategy, ...] = tuple(strategies)

    @classmethod
    def default(cls) -> StrategyRegistry:
        return cls((Strategy.GERRIT, Strategy.CLOUD_PLATFORM))

    def __iter__(self) -> Iterator[Strategy]:
        return iter(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)

    def matching(self, requirements: Iterable[DomainRequirement]) -> list[Strategy]:
        """All strategies compatible with the requirements, in registry order."""
        requirements = list(requirements)
        return [strategy for strategy in self._strategies if strategy.matches(requirements)]

    def first_matching(self, requirements: Iterable[DomainRequirement]) -> Strategy | None:
        """First strategy compatible with the requirements, or None."""
        requirements = list(requirements)
        for strategy in self._strategies:
            if strategy.matches(requirements):
                return strategy
        return None
