"""CLI commands for google-source-auth.

The root group lives in ``google_source_auth.main`` (entry point
``google-source-auth``); this package holds its sub-commands.

Key Commands:
    credential-helper (google_source_auth.cli.credential_helper):
        git credential helper answering ``get`` with a robot-derived
        username and OAuth access token.

    keys (google_source_auth.cli.keys):
        Stores and removes service-account JSON keys in the OS keyring.

Usage Examples:
    List the credentials offered for a repository::

        $ google-source-auth --config robots.yaml lookup https://gerrit.googlesource.com/foo

    Store a robot key::

        $ google-source-auth keys set google-source/ci-robot ci-robot.json
"""

from google_source_auth.cli.credential_helper import credential_helper_command
from google_source_auth.cli.keys import keys_group

__all__ = ["credential_helper_command", "keys_group"]
