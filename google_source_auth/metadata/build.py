"""Build and SCM records the metadata extractors read.

These mirror what the host CI server and its SCM plugins record about a
build. They are plain inputs: nothing here talks to a server.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, TypeVar

A = TypeVar("A")


@dataclass(frozen=True)
class ChangeLogEntry:
    """One change picked up by a build."""

    author_id: str
    commit_id: str = ""
    message: str = ""


@dataclass(frozen=True)
class ChangeLogSet:
    """Changes picked up by a build, newest first."""

    entries: tuple[ChangeLogEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __iter__(self) -> Iterator[ChangeLogEntry]:
        return iter(self.entries)

    def latest_author(self) -> str:
        """Author id of the newest change, or "" for an empty set."""
        if self.is_empty:
            return ""
        return self.entries[0].author_id


@dataclass
class Build:
    """A build and the actions attached to it.

    Attributes:
        number: Build number within its job
        actions: Objects recorded by plugins (git build data, hg tags, ...)
        attachments: Per-build storage used by ``MetadataContainer.of``
    """

    number: int
    actions: list[Any] = field(default_factory=list)
    attachments: dict[str, Any] = field(default_factory=dict, repr=False)

    def get_actions(self, action_type: type[A]) -> list[A]:
        return [action for action in self.actions if isinstance(action, action_type)]


@dataclass(frozen=True)
class GitBuildData:
    """Git plugin record of what a build checked out.

    Attributes:
        last_built_revision: SHA-1 of the revision built
        remote_urls: Remote repository URLs
        builds_by_branch_name: Branch name to the number of the last build
            of that branch
    """

    last_built_revision: str
    remote_urls: tuple[str, ...] = ()
    builds_by_branch_name: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MercurialTagAction:
    """Mercurial plugin record of the changeset a build used."""

    id: str
    subdir: str = ""


class Scm:
    """Base of the SCM configurations a job can use."""


@dataclass(frozen=True)
class GitScm(Scm):
    urls: tuple[str, ...] = ()
    branches: tuple[str, ...] = ()


@dataclass(frozen=True)
class MercurialScm(Scm):
    source: str
    branch: str = "default"
    subdir: str = ""


@dataclass(frozen=True)
class MultiScm(Scm):
    """Several SCMs checked out side by side."""

    scms: tuple[Scm, ...] = ()
