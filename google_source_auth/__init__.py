"""google-source-auth: Google Source git credentials derived from robot credentials.

Service-account robots are exposed as username/password credentials for
``*.googlesource.com`` (Gerrit) and Cloud Source Repositories, and builds can
record which repository, branch and revision they used.
"""

__version__ = "0.1.0"
