"""Extraction of ``SourceMetadata`` from a completed build.

Two kinds of extractors contribute records:

* ``BuildActionExtractor``: reads actions recorded on the build (git build
  data, mercurial tag actions) together with the build's change log.
* ``ScmExtractor``: reads the job's SCM configuration, for the SCM classes it
  supports.

Each record comes with a dedupe key. Records sharing a non-empty key describe
the same repository and are merged with ``SourceMetadata.merge_from`` (the
first record wins, later ones fill its gaps). The empty key means "do not
dedupe".

Extractors are passed in explicitly; ``SourceMetadataExtractor.for_plugins``
builds the set matching the SCM plugins installed on the host.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

import structlog

from google_source_auth.metadata.build import (
    Build,
    ChangeLogSet,
    GitBuildData,
    MercurialScm,
    MercurialTagAction,
    MultiScm,
    Scm,
)
from google_source_auth.metadata.models import SourceMetadata

log = structlog.get_logger(__name__)

NO_DEDUPE = ""

Keyed = tuple[str, SourceMetadata]


def mercurial_dedupe_key(subdir: str) -> str:
    return f"mercurial:{subdir}"


class BuildActionExtractor(ABC):
    """Extracts metadata from the actions recorded on a build."""

    @abstractmethod
    def extract(self, build: Build, changelog: ChangeLogSet) -> list[Keyed]:
        ...


class ScmExtractor(ABC):
    """Extracts metadata from one SCM configuration class."""

    supported_class: type[Scm] = Scm

    def is_applicable(self, scm: Scm) -> bool:
        return isinstance(scm, self.supported_class)

    @abstractmethod
    def extract(self, scm: Scm, owner: SourceMetadataExtractor) -> list[Keyed]:
        """Extract records from ``scm``.

        Args:
            scm: Instance of ``supported_class``
            owner: Extractor running this one, for SCMs that nest others
        """
        ...


class GitBuildActionExtractor(BuildActionExtractor):
    """One record per remote URL of every git build-data action."""

    def extract(self, build: Build, changelog: ChangeLogSet) -> list[Keyed]:
        author = changelog.latest_author()
        records: list[Keyed] = []
        for build_data in build.get_actions(GitBuildData):
            branch = self._branch_for_build(build, build_data)
            for url in build_data.remote_urls:
                records.append(
                    (
                        NO_DEDUPE,
                        SourceMetadata(
                            scm="git",
                            repo_url=url,
                            branch=branch,
                            revision=build_data.last_built_revision,
                            last_author=author,
                        ),
                    )
                )
        return records

    @staticmethod
    def _branch_for_build(build: Build, build_data: GitBuildData) -> str:
        branch = ""
        for name, build_number in build_data.builds_by_branch_name.items():
            if build_number == build.number:
                branch = name
        return branch


class MercurialBuildActionExtractor(BuildActionExtractor):
    """The changeset of every mercurial tag action, keyed by checkout subdir."""

    def extract(self, build: Build, changelog: ChangeLogSet) -> list[Keyed]:
        author = changelog.latest_author()
        return [
            (
                mercurial_dedupe_key(action.subdir),
                SourceMetadata(
                    scm="mercurial",
                    repo_url="",
                    branch="",
                    revision=action.id,
                    last_author=author,
                ),
            )
            for action in build.get_actions(MercurialTagAction)
        ]


class MercurialScmExtractor(ScmExtractor):
    """Repository URL and branch of a mercurial SCM, keyed by checkout subdir."""

    supported_class = MercurialScm

    def extract(self, scm: Scm, owner: SourceMetadataExtractor) -> list[Keyed]:
        assert isinstance(scm, MercurialScm)
        return [
            (
                mercurial_dedupe_key(scm.subdir),
                SourceMetadata(
                    scm="mercurial",
                    repo_url=scm.source,
                    branch=scm.branch,
                    revision="",
                    last_author="",
                ),
            )
        ]


class MultiScmExtractor(ScmExtractor):
    """Records of every SCM configured inside a multi-SCM."""

    supported_class = MultiScm

    def extract(self, scm: Scm, owner: SourceMetadataExtractor) -> list[Keyed]:
        assert isinstance(scm, MultiScm)
        records: list[Keyed] = []
        for inner in scm.scms:
            records.extend(owner.extract_from_scm(inner))
        return records


PLUGIN_BUILD_ACTION_EXTRACTORS: dict[str, type[BuildActionExtractor]] = {
    "git": GitBuildActionExtractor,
    "mercurial": MercurialBuildActionExtractor,
}

PLUGIN_SCM_EXTRACTORS: dict[str, type[ScmExtractor]] = {
    "mercurial": MercurialScmExtractor,
    "multiple-scms": MultiScmExtractor,
}


class SourceMetadataExtractor:
    """Runs the configured extractors and merges their records.

    Example:
        >>> extractor = SourceMetadataExtractor.for_plugins(["git", "mercurial"])
        >>> records = extractor.extract(build, scm, changelog)
    """

    def __init__(
        self,
        build_action_extractors: Sequence[BuildActionExtractor] = (),
        scm_extractors: Sequence[ScmExtractor] = (),
    ) -> None:
        self.build_action_extractors = tuple(build_action_extractors)
        self.scm_extractors = tuple(scm_extractors)

    @classmethod
    def for_plugins(cls, installed_plugins: Iterable[str]) -> SourceMetadataExtractor:
        """Build an extractor with the extractors of the installed SCM plugins."""
        installed = set(installed_plugins)
        return cls(
            build_action_extractors=[
                factory() for name, factory in PLUGIN_BUILD_ACTION_EXTRACTORS.items() if name in installed
            ],
            scm_extractors=[factory() for name, factory in PLUGIN_SCM_EXTRACTORS.items() if name in installed],
        )

    def extract_from_build_actions(self, build: Build | None, changelog: ChangeLogSet) -> list[Keyed]:
        if build is None:
            return []
        records: list[Keyed] = []
        for extractor in self.build_action_extractors:
            records.extend(extractor.extract(build, changelog))
        return records

    def extract_from_scm(self, scm: Scm | None) -> list[Keyed]:
        if scm is None:
            return []
        records: list[Keyed] = []
        for extractor in self.scm_extractors:
            if extractor.is_applicable(scm):
                records.extend(extractor.extract(scm, self))
        return records

    def extract(
        self,
        build: Build | None,
        scm: Scm | None,
        changelog: ChangeLogSet | None = None,
    ) -> list[SourceMetadata]:
        """Extract and merge the source metadata of a build.

        Returns:
            Merged records in first-seen key order, followed by the records
            that are never deduplicated
        """
        changelog = changelog or ChangeLogSet()

        merged: dict[str, SourceMetadata] = {}
        not_deduped: list[SourceMetadata] = []
        for key, record in self.extract_from_build_actions(build, changelog) + self.extract_from_scm(scm):
            if key == NO_DEDUPE:
                not_deduped.append(record)
            elif key in merged:
                merged[key] = merged[key].merge_from(record)
            else:
                merged[key] = record

        log.debug("source_metadata_extracted", merged=len(merged), not_deduped=len(not_deduped))
        return [*merged.values(), *not_deduped]
