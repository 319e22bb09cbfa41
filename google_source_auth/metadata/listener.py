"""Build listener recording source metadata once a build's change log is parsed."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from google_source_auth.metadata.build import Build, ChangeLogSet, Scm
from google_source_auth.metadata.extractor import SourceMetadataExtractor
from google_source_auth.metadata.models import MetadataContainer, SourceMetadata

if TYPE_CHECKING:
    from google_source_auth.config.settings import SourceAuthSettings

log = structlog.get_logger(__name__)


class SourceMetadataBuildListener:
    """Adds the extracted ``SourceMetadata`` of a build to its container.

    The embedding application calls ``on_changelog_parsed`` from its SCM
    checkout hook.
    """

    def __init__(self, extractor: SourceMetadataExtractor) -> None:
        self.extractor = extractor

    @classmethod
    def from_settings(cls, settings: SourceAuthSettings) -> SourceMetadataBuildListener:
        """Listener using the extractors of the configured SCM plugins."""
        return cls(SourceMetadataExtractor.for_plugins(settings.installed_plugins))

    def on_changelog_parsed(self, build: Build, scm: Scm | None, changelog: ChangeLogSet) -> list[SourceMetadata]:
        records = self.extractor.extract(build, scm, changelog)
        container = MetadataContainer.of(build)
        for record in records:
            container.add(record)
        log.info("source_metadata_recorded", build=build.number, records=len(records))
        return records
