"""Source provenance records attached to builds.

A ``SourceMetadata`` says which SCM, repository, branch and revision a build
used and who authored the newest change. Records are stored per build in a
``MetadataContainer``.

Example:
    >>> record = SourceMetadata(scm="git", repo_url="https://a.googlesource.com/x",
    ...                         branch="main", revision="abc123", last_author="dev")
    >>> record.to_json()
    '{".scm.SourceMetadata":{"scm":"git","repoUrl":...}}'
"""

from __future__ import annotations

import json
from collections import defaultdict
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from google_source_auth.exceptions import MetadataError

if TYPE_CHECKING:
    from google_source_auth.metadata.build import Build

SOURCE_KEY = "com.google.jenkins.source"
TYPE_NAME = ".scm.SourceMetadata"


class SourceMetadata(BaseModel):
    """Source code used by a build.

    Attributes:
        scm: SCM kind, e.g. "git" or "mercurial"
        repo_url: Repository URL
        branch: Branch built
        revision: Revision built
        last_author: Author of the newest recorded change

    Empty strings mean "unknown" and are filled by ``merge_from``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: ClassVar[str] = SOURCE_KEY

    scm: str
    repo_url: str = Field(alias="repoUrl")
    branch: str
    revision: str
    last_author: str = Field(alias="lastAuthor")

    def merge_from(self, other: SourceMetadata) -> SourceMetadata:
        """Return a copy with empty fields filled in from ``other``."""
        return SourceMetadata(
            scm=self.scm or other.scm,
            repo_url=self.repo_url or other.repo_url,
            branch=self.branch or other.branch,
            revision=self.revision or other.revision,
            last_author=self.last_author or other.last_author,
        )

    def to_json(self) -> str:
        """Serialize wrapped in an object keyed by the type name."""
        body = self.model_dump(mode="json", by_alias=True)
        return json.dumps({TYPE_NAME: body}, separators=(",", ":"))

    @classmethod
    def from_json(cls, payload: str) -> SourceMetadata:
        """Read the form written by ``to_json``.

        Raises:
            MetadataError: If the payload is not a wrapped SourceMetadata
        """
        try:
            data = json.loads(payload)
            return cls.model_validate(data[TYPE_NAME])
        except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
            raise MetadataError(f"Invalid SourceMetadata payload: {e}") from e


class MetadataContainer:
    """Per-build collection of metadata values, grouped by key."""

    ATTACHMENT = "metadata"

    def __init__(self) -> None:
        self._values: dict[str, list[SourceMetadata]] = defaultdict(list)

    @classmethod
    def of(cls, build: Build) -> MetadataContainer:
        """Return the container attached to a build, creating it if needed."""
        container = build.attachments.get(cls.ATTACHMENT)
        if container is None:
            container = cls()
            build.attachments[cls.ATTACHMENT] = container
        return container

    def add(self, value: SourceMetadata) -> None:
        self._values[value.key].append(value)

    def get(self, key: str) -> list[SourceMetadata]:
        return list(self._values.get(key, ()))

    def __len__(self) -> int:
        return sum(len(values) for values in self._values.values())
