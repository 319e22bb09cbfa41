"""Abstract credential types.

The provider decides whether it can answer a lookup with
``issubclass(<translated type>, requested_type)``, so the credential kinds
are nominal base classes rather than structural protocols.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import SecretStr

if TYPE_CHECKING:
    from google_source_auth.credentials.requirements import (
        DomainRequirement,
        OAuthScopeRequirement,
    )


class Credential(ABC):
    """Root of every credential handed out by a store or provider."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Stable identifier of the credential."""
        ...


class RobotCredential(Credential):
    """An OAuth-capable service-account credential managed outside this package.

    Implementations must be able to mint an access token for a scope
    requirement and to produce a variant of themselves that keeps working in
    an execution context without access to the credential store.
    """

    @property
    @abstractmethod
    def username(self) -> str:
        """Account identifier (the service-account email)."""
        ...

    @property
    def description(self) -> str:
        return self.username

    @abstractmethod
    def access_token(self, scope: OAuthScopeRequirement) -> SecretStr:
        """Return an access token for the scope.

        Raises:
            AuthenticationFailureError: If the token cannot be obtained
        """
        ...

    @abstractmethod
    def for_remote(self, scope: OAuthScopeRequirement) -> RobotCredential:
        """Return a credential usable for ``scope`` away from the store.

        Raises:
            AuthenticationFailureError: If the remote variant cannot be built
        """
        ...


class UsernamePasswordCredential(Credential):
    """A username/password pair, the shape git and hg clients understand."""

    @abstractmethod
    def username(self) -> str:
        ...

    @abstractmethod
    def password(self) -> SecretStr:
        ...

    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def matches(self, requirements: Iterable[DomainRequirement]) -> bool:
        """Whether the credential may be used for the given requirements."""
        ...
