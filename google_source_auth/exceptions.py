"""Exceptions raised by google-source-auth.

Exception Hierarchy:
    GoogleSourceAuthError (base)
    ├── ConfigurationError
    ├── CredentialError
    │   ├── CredentialUnavailableError
    │   ├── AuthenticationFailureError
    │   └── CredentialFormatError
    └── MetadataError

A domain that does not match a request is not an error: strategy and
requirement matching report it as an empty result.

Example Usage:
    >>> from google_source_auth.exceptions import CredentialUnavailableError
    >>> try:
    ...     credential.username()
    ... except CredentialUnavailableError as e:
    ...     print(e.reference)
"""


class GoogleSourceAuthError(Exception):
    """Root of every error this package raises.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(GoogleSourceAuthError):
    """The settings file is missing, unreadable, not YAML or invalid."""


class CredentialError(GoogleSourceAuthError):
    """A credential could not be resolved, used or decoded.

    ``str(error)`` includes the reference and suggestion; ``error.message``
    is the bare description.

    Attributes:
        message: Human-readable error description
        reference: Credential id or key reference involved, if any
        suggestion: Hint for fixing the problem, if any
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.reference = reference
        self.suggestion = suggestion

        details = f"{message} (reference: {reference})" if reference else message
        if suggestion:
            details += f"\nSuggestion: {suggestion}"
        super().__init__(details)
        self.message = message


class CredentialUnavailableError(CredentialError):
    """The underlying robot credential id is no longer resolvable."""


class AuthenticationFailureError(CredentialError):
    """An OAuth access token could not be obtained for a robot credential.

    Covers expired or invalid grants, refresh failures and transport errors
    reported by the identity provider. Never retried.
    """


class CredentialFormatError(CredentialError):
    """Key material, a strategy name or a persisted credential is malformed."""


class MetadataError(GoogleSourceAuthError):
    """A serialized SCM metadata record could not be decoded."""
