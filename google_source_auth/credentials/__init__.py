"""Google Source credentials derived from robot (service-account) credentials.

Key Exports:
    SourceCredentialProvider: Lists username/password credentials for a domain
    Strategy, StrategyRegistry: Domain-to-scope-to-login bindings
    LiveCredential, SnapshotCredential, snapshot: Translated credential forms
    HostContext: Injected execution context (with or without store access)
    InMemoryCredentialStore: Ordered robot credential store
    dump_credential, load_credential: Wire/disk form
    KeyringBackend: Service-account keys kept in the OS keyring
"""

from google_source_auth.credentials.base import (
    Credential,
    RobotCredential,
    UsernamePasswordCredential,
)
from google_source_auth.credentials.context import ANONYMOUS, SYSTEM, ActingIdentity, HostContext
from google_source_auth.credentials.keys import KeyringBackend, load_service_account_info
from google_source_auth.credentials.persistence import dump_credential, load_credential
from google_source_auth.credentials.provider import SourceCredentialProvider
from google_source_auth.credentials.requirements import (
    DomainPattern,
    DomainRequirement,
    HostnameRequirement,
    OAuthScopeRequirement,
    SchemeRequirement,
    requirements_for_url,
)
from google_source_auth.credentials.robot import (
    RemoteRobotCredential,
    ServiceAccountRobotCredential,
)
from google_source_auth.credentials.store import (
    InMemoryCredentialStore,
    RobotCredentialStore,
    StoreEntry,
)
from google_source_auth.credentials.strategy import (
    GERRIT_SCOPE,
    SOURCE_READ_WRITE_SCOPE,
    Strategy,
    StrategyRegistry,
    identity_for,
)
from google_source_auth.credentials.translated import (
    LiveCredential,
    SnapshotCredential,
    TranslatedCredential,
    display_name,
    snapshot,
)

__all__ = [
    # Provider
    "SourceCredentialProvider",
    # Strategies
    "Strategy",
    "StrategyRegistry",
    "identity_for",
    "GERRIT_SCOPE",
    "SOURCE_READ_WRITE_SCOPE",
    # Requirements
    "DomainPattern",
    "DomainRequirement",
    "HostnameRequirement",
    "OAuthScopeRequirement",
    "SchemeRequirement",
    "requirements_for_url",
    # Credential types
    "Credential",
    "RobotCredential",
    "UsernamePasswordCredential",
    "ServiceAccountRobotCredential",
    "RemoteRobotCredential",
    "LiveCredential",
    "SnapshotCredential",
    "TranslatedCredential",
    "snapshot",
    "display_name",
    # Context and store
    "HostContext",
    "ActingIdentity",
    "SYSTEM",
    "ANONYMOUS",
    "InMemoryCredentialStore",
    "RobotCredentialStore",
    "StoreEntry",
    # Persistence
    "dump_credential",
    "load_credential",
    # Key material
    "KeyringBackend",
    "load_service_account_info",
]
