"""Domain requirements and the domain patterns they are tested against.

A caller describes the context a credential must be valid for with a set of
requirements (URL scheme, hostname, OAuth scopes). Each strategy owns a
``DomainPattern`` that says which schemes and hostnames it serves.

Matching follows the host credential-domain rules: a requirement whose kind
the pattern constrains must be satisfied, requirements of other kinds are
ignored, and an empty requirement set matches every pattern. A failed match
is a normal outcome (``False``), never an exception.

Supported URL formats for ``requirements_for_url``:
    HTTPS:
        - https://host/path
        - https://host:port/path
    SSH:
        - ssh://user@host/path
        - user@host:path

Example:
    >>> pattern = DomainPattern("gerrit", frozenset({"https"}), ("*.googlesource.com",))
    >>> pattern.matches(requirements_for_url("https://gerrit.googlesource.com/foo"))
    True
    >>> pattern.matches([SchemeRequirement("ssh")])
    False
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from fnmatch import fnmatchcase

from google_source_auth.exceptions import CredentialFormatError


@dataclass(frozen=True)
class SchemeRequirement:
    """Requires a credential usable with the given URL scheme."""

    scheme: str


@dataclass(frozen=True)
class HostnameRequirement:
    """Requires a credential usable against the given hostname."""

    hostname: str


@dataclass(frozen=True)
class OAuthScopeRequirement:
    """Requires a robot credential allowed to mint tokens for these scopes."""

    scopes: frozenset[str]

    @classmethod
    def of(cls, *scopes: str) -> "OAuthScopeRequirement":
        return cls(frozenset(scopes))


DomainRequirement = SchemeRequirement | HostnameRequirement | OAuthScopeRequirement


@dataclass(frozen=True)
class DomainPattern:
    """The schemes and hostname globs a strategy serves.

    Attributes:
        name: Domain name, used in logs
        schemes: Accepted URL schemes (lower case)
        host_globs: Accepted hostnames, ``fnmatch`` style globs (lower case)
    """

    name: str
    schemes: frozenset[str]
    host_globs: tuple[str, ...]

    def matches_scheme(self, scheme: str) -> bool:
        return scheme.lower() in self.schemes

    def matches_hostname(self, hostname: str) -> bool:
        hostname = hostname.lower()
        return any(fnmatchcase(hostname, glob) for glob in self.host_globs)

    def matches(self, requirements: Iterable[DomainRequirement]) -> bool:
        """Test whether this pattern is compatible with every requirement.

        Args:
            requirements: Requirements supplied by the caller

        Returns:
            False as soon as one scheme or hostname requirement contradicts
            the pattern, True otherwise
        """
        for requirement in requirements:
            if isinstance(requirement, SchemeRequirement):
                if not self.matches_scheme(requirement.scheme):
                    return False
            elif isinstance(requirement, HostnameRequirement):
                if not self.matches_hostname(requirement.hostname):
                    return False
        return True


# scp-style: user@host:path. Requires user@ to avoid matching scheme URLs.
SCP_PATTERN = re.compile(r"^(?P<user>[\w.-]+)@(?P<host>[a-zA-Z0-9._-]+):(?P<path>(?!//).*)$")

# scheme://[user@]host[:port][/path]
URL_PATTERN = re.compile(
    r"^(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*)://(?:[^@/]+@)?"
    r"(?P<host>[a-zA-Z0-9._-]+)(?::(?P<port>\d+))?(?:/(?P<path>.*))?$"
)


def requirements_for_url(url: str) -> list[DomainRequirement]:
    """Derive the scheme and hostname requirements of a repository URL.

    Args:
        url: Repository URL. Leading/trailing whitespace is ignored.

    Returns:
        ``[SchemeRequirement, HostnameRequirement]``

    Raises:
        CredentialFormatError: If the URL is neither scheme-based nor
            scp-style
    """
    url = url.strip()

    match = URL_PATTERN.match(url)
    if match:
        return [
            SchemeRequirement(match.group("scheme").lower()),
            HostnameRequirement(match.group("host").lower()),
        ]

    match = SCP_PATTERN.match(url)
    if match:
        return [SchemeRequirement("ssh"), HostnameRequirement(match.group("host").lower())]

    raise CredentialFormatError(
        f"Invalid repository URL '{url}'",
        suggestion="Use https://host/path, ssh://host/path or user@host:path",
    )
