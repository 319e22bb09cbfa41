"""Tests for google_source_auth/metadata - SCM provenance of builds."""

import json

import pytest

from google_source_auth.config.settings import SourceAuthSettings
from google_source_auth.exceptions import MetadataError
from google_source_auth.metadata import (
    SOURCE_KEY,
    Build,
    ChangeLogEntry,
    ChangeLogSet,
    GitBuildActionExtractor,
    GitBuildData,
    GitScm,
    MercurialBuildActionExtractor,
    MercurialScm,
    MercurialScmExtractor,
    MercurialTagAction,
    MetadataContainer,
    MultiScm,
    MultiScmExtractor,
    SourceMetadata,
    SourceMetadataBuildListener,
    SourceMetadataExtractor,
)

REPO_URL = "https://source.developers.google.com/p/project/r/repo"
REVISION = "fa16a9aa8c9a2a9f6d4d4a5ccfa1e4c3d4a3a7e1"
AUTHOR_1 = "alice"
AUTHOR_2 = "bob"


def metadata(scm="a", repo_url="b", branch="c", revision="d", last_author="e") -> SourceMetadata:
    return SourceMetadata(scm=scm, repo_url=repo_url, branch=branch, revision=revision, last_author=last_author)


@pytest.fixture
def build() -> Build:
    return Build(number=42)


@pytest.fixture
def changes() -> ChangeLogSet:
    return ChangeLogSet((ChangeLogEntry(AUTHOR_1), ChangeLogEntry(AUTHOR_2)))


@pytest.fixture
def extractor() -> SourceMetadataExtractor:
    return SourceMetadataExtractor.for_plugins(["git", "mercurial", "multiple-scms"])


@pytest.fixture
def listener(extractor) -> SourceMetadataBuildListener:
    return SourceMetadataBuildListener(extractor)


class TestSourceMetadata:
    """Tests for SourceMetadata."""

    def test_equality(self):
        """Should compare by value."""
        assert metadata() == metadata()
        assert metadata() != metadata(scm="delta")
        assert metadata() != metadata(last_author="delta")

    def test_key(self):
        """Should be stored under the source key."""
        assert metadata().key == SOURCE_KEY == "com.google.jenkins.source"

    @pytest.mark.parametrize(
        "field",
        ["scm", "repo_url", "branch", "revision", "last_author"],
    )
    def test_merge_fills_empty_field(self, field):
        """Should take an empty field from the other record."""
        merged = metadata(**{field: ""}).merge_from(metadata("1", "2", "3", "4", "5"))
        expected = metadata(**{field: getattr(metadata("1", "2", "3", "4", "5"), field)})

        assert merged == expected

    def test_merge_keeps_own_values(self):
        """Should keep every non-empty field."""
        assert metadata().merge_from(metadata("1", "2", "3", "4", "5")) == metadata()

    def test_merge_all_empty(self):
        """Should take everything from the other record when empty."""
        empty = metadata("", "", "", "", "")

        assert empty.merge_from(metadata("1", "2", "3", "4", "5")) == metadata("1", "2", "3", "4", "5")

    def test_json_form(self):
        """Should serialize wrapped in its type name with camelCase fields."""
        data = json.loads(metadata().to_json())

        assert data == {
            ".scm.SourceMetadata": {
                "scm": "a",
                "repoUrl": "b",
                "branch": "c",
                "revision": "d",
                "lastAuthor": "e",
            }
        }

    def test_from_json(self):
        """Should read the wrapped JSON form."""
        assert SourceMetadata.from_json(metadata().to_json()) == metadata()


class TestMetadataContainer:
    """Tests for MetadataContainer."""

    def test_attached_once_per_build(self, build):
        """Should return the same container for a build."""
        assert MetadataContainer.of(build) is MetadataContainer.of(build)

    def test_add_and_get(self, build):
        """Should group values by key."""
        container = MetadataContainer.of(build)
        container.add(metadata())

        assert container.get(SOURCE_KEY) == [metadata()]
        assert container.get("other") == []
        assert len(container) == 1


class TestExtractors:
    """Tests for the individual extractors."""

    def test_git_branch_for_build_number(self, build, changes):
        """Should pick the branch last built by this build."""
        build.actions.append(
            GitBuildData(
                last_built_revision=REVISION,
                remote_urls=(REPO_URL,),
                builds_by_branch_name={"wrong-branch": 43, "right-branch": 42},
            )
        )

        records = GitBuildActionExtractor().extract(build, changes)

        assert records == [("", SourceMetadata(
            scm="git", repo_url=REPO_URL, branch="right-branch", revision=REVISION, last_author=AUTHOR_1
        ))]

    def test_git_unknown_branch(self, build):
        """Should leave the branch empty when no branch matches."""
        build.actions.append(GitBuildData(REVISION, (REPO_URL,), {"other": 1}))

        [(_, record)] = GitBuildActionExtractor().extract(build, ChangeLogSet())

        assert record.branch == ""
        assert record.last_author == ""

    def test_git_one_record_per_remote(self, build, changes):
        """Should produce a record for each remote URL."""
        build.actions.append(GitBuildData(REVISION, (REPO_URL, "https://mirror.example.com/repo")))

        records = GitBuildActionExtractor().extract(build, changes)

        assert [record.repo_url for _, record in records] == [REPO_URL, "https://mirror.example.com/repo"]

    def test_mercurial_tag_keyed_by_subdir(self, build, changes):
        """Should key mercurial changesets by checkout subdir."""
        build.actions.append(MercurialTagAction(REVISION, subdir="foo"))

        [(key, record)] = MercurialBuildActionExtractor().extract(build, changes)

        assert key == "mercurial:foo"
        assert record.revision == REVISION
        assert record.repo_url == ""

    def test_mercurial_scm(self, extractor):
        """Should read the repository and branch of a mercurial SCM."""
        scm = MercurialScm(REPO_URL, branch="hg-branch", subdir="foo")

        [(key, record)] = MercurialScmExtractor().extract(scm, extractor)

        assert key == "mercurial:foo"
        assert (record.repo_url, record.branch, record.revision) == (REPO_URL, "hg-branch", "")

    def test_multi_scm_recurses(self, extractor):
        """Should extract from every nested SCM it knows."""
        scm = MultiScm((MercurialScm(REPO_URL, subdir="a"), GitScm((REPO_URL,)), MercurialScm(REPO_URL, subdir="b")))

        records = MultiScmExtractor().extract(scm, extractor)

        assert [key for key, _ in records] == ["mercurial:a", "mercurial:b"]

    def test_scm_extractor_applicability(self):
        """Should only apply to its supported SCM class."""
        assert MercurialScmExtractor().is_applicable(MercurialScm(REPO_URL)) is True
        assert MercurialScmExtractor().is_applicable(GitScm()) is False


class TestSourceMetadataExtractor:
    """Tests for SourceMetadataExtractor."""

    def test_for_plugins(self):
        """Should only enable extractors of installed plugins."""
        extractor = SourceMetadataExtractor.for_plugins(["git"])

        assert [type(e) for e in extractor.build_action_extractors] == [GitBuildActionExtractor]
        assert extractor.scm_extractors == ()

    def test_nothing_to_extract(self):
        """Should return nothing for a missing build and SCM."""
        assert SourceMetadataExtractor.for_plugins(["git", "mercurial"]).extract(None, None) == []

    def test_merges_same_key(self, extractor, build, changes):
        """Should merge records sharing a dedupe key."""
        build.actions.append(MercurialTagAction(REVISION, subdir="foo"))

        records = extractor.extract(build, MercurialScm(REPO_URL, branch="branchname", subdir="foo"), changes)

        assert records == [
            SourceMetadata(
                scm="mercurial",
                repo_url=REPO_URL,
                branch="branchname",
                revision=REVISION,
                last_author=AUTHOR_1,
            )
        ]

    def test_disabled_plugin_contributes_nothing(self, build, changes):
        """Should ignore actions of plugins that are not installed."""
        build.actions.append(MercurialTagAction(REVISION))

        assert SourceMetadataExtractor.for_plugins(["git"]).extract(build, None, changes) == []


class TestSourceMetadataBuildListener:
    """Tests for SourceMetadataBuildListener."""

    def test_no_info(self, listener, build):
        """Should record nothing when the build carries no SCM data."""
        listener.on_changelog_parsed(build, None, ChangeLogSet())

        assert len(MetadataContainer.of(build)) == 0

    def test_git(self, listener, build, changes):
        """Should record the git checkout of the build."""
        build.actions.append(
            GitBuildData(REVISION, (REPO_URL,), {"wrong-branch": 43, "right-branch": 42})
        )

        listener.on_changelog_parsed(build, None, changes)

        [source] = MetadataContainer.of(build).get(SOURCE_KEY)
        assert source == SourceMetadata(
            scm="git", repo_url=REPO_URL, branch="right-branch", revision=REVISION, last_author=AUTHOR_1
        )

    def test_mercurial(self, listener, build, changes):
        """Should merge the mercurial tag with the SCM configuration."""
        build.actions.append(MercurialTagAction(REVISION, subdir="foo"))
        scm = MercurialScm(REPO_URL, branch="branchname", subdir="foo")

        listener.on_changelog_parsed(build, scm, changes)

        [source] = MetadataContainer.of(build).get(SOURCE_KEY)
        assert source == SourceMetadata(
            scm="mercurial", repo_url=REPO_URL, branch="branchname", revision=REVISION, last_author=AUTHOR_1
        )

    def test_multi_scm(self, listener, build, changes):
        """Should record git and mercurial checkouts of a multi-SCM job."""
        build.actions.append(MercurialTagAction(REVISION, subdir="foo"))
        build.actions.append(GitBuildData(REVISION, (REPO_URL,), {"git-branch": 42}))
        scm = MultiScm((MercurialScm(REPO_URL, branch="hg-branch", subdir="foo"),))

        listener.on_changelog_parsed(build, scm, changes)

        records = MetadataContainer.of(build).get(SOURCE_KEY)
        assert len(records) == 2
        assert SourceMetadata(
            scm="git", repo_url=REPO_URL, branch="git-branch", revision=REVISION, last_author=AUTHOR_1
        ) in records
        assert SourceMetadata(
            scm="mercurial", repo_url=REPO_URL, branch="hg-branch", revision=REVISION, last_author=AUTHOR_1
        ) in records

    def test_from_settings(self):
        """Should enable the extractors of the configured plugins."""
        settings = SourceAuthSettings(installed_plugins=["mercurial"])

        listener = SourceMetadataBuildListener.from_settings(settings)

        assert [type(e) for e in listener.extractor.build_action_extractors] == [MercurialBuildActionExtractor]
        assert [type(e) for e in listener.extractor.scm_extractors] == [MercurialScmExtractor]


class TestSourceMetadataJsonErrors:
    """Tests for decoding malformed SourceMetadata payloads."""

    @pytest.mark.parametrize(
        "payload",
        ["not json", "[]", '{"other": {}}', '{".scm.SourceMetadata": {"scm": "git"}}'],
    )
    def test_invalid_payload(self, payload):
        """Should raise MetadataError."""
        with pytest.raises(MetadataError, match="Invalid SourceMetadata payload"):
            SourceMetadata.from_json(payload)
