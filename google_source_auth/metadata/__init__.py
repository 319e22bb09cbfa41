"""SCM provenance (repository, branch, revision, author) recorded for builds.

Example:
    >>> from google_source_auth.metadata import SourceMetadataBuildListener, SourceMetadataExtractor
    >>> listener = SourceMetadataBuildListener(SourceMetadataExtractor.for_plugins(["git"]))
    >>> listener.on_changelog_parsed(build, scm, changelog)
"""

from google_source_auth.metadata.build import (
    Build,
    ChangeLogEntry,
    ChangeLogSet,
    GitBuildData,
    GitScm,
    MercurialScm,
    MercurialTagAction,
    MultiScm,
    Scm,
)
from google_source_auth.metadata.extractor import (
    BuildActionExtractor,
    GitBuildActionExtractor,
    MercurialBuildActionExtractor,
    MercurialScmExtractor,
    MultiScmExtractor,
    ScmExtractor,
    SourceMetadataExtractor,
)
from google_source_auth.metadata.listener import SourceMetadataBuildListener
from google_source_auth.metadata.models import SOURCE_KEY, MetadataContainer, SourceMetadata

__all__ = [
    # Records
    "SourceMetadata",
    "MetadataContainer",
    "SOURCE_KEY",
    # Extraction
    "SourceMetadataExtractor",
    "SourceMetadataBuildListener",
    "BuildActionExtractor",
    "ScmExtractor",
    "GitBuildActionExtractor",
    "MercurialBuildActionExtractor",
    "MercurialScmExtractor",
    "MultiScmExtractor",
    # Build inputs
    "Build",
    "ChangeLogEntry",
    "ChangeLogSet",
    "GitBuildData",
    "MercurialTagAction",
    "Scm",
    "GitScm",
    "MercurialScm",
    "MultiScm",
]
