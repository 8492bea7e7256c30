"""Record types for the versioning stores.

Rows are mapped to these dataclasses at the store boundary; a row that is
missing a required column or carries a value of the wrong shape raises
MalformedRowError instead of leaking into the engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from common.constants import SHORT_SHA_LENGTH
from vcs.db import Row
from vcs.errors import MalformedRowError


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _required(row: Row, column: str, record: str) -> Any:
    value = row.get(column)
    if value is None:
        raise MalformedRowError(f"{record} row is missing '{column}'")
    return value


def _text(row: Row, column: str, record: str) -> str:
    value = _required(row, column, record)
    if not isinstance(value, str):
        raise MalformedRowError(f"{record}.{column} must be text, got {type(value).__name__}")
    return value


def _optional_text(row: Row, column: str, record: str) -> str | None:
    if row.get(column) is None:
        return None
    return _text(row, column, record)


def _timestamp(row: Row, column: str, record: str) -> datetime:
    """Parse a timestamp column.

    SQLite hands back the ISO string that was written, psycopg a datetime.
    """
    value = _required(row, column, record)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise MalformedRowError(f"{record}.{column} is not a timestamp: {value!r}") from e
    if not isinstance(value, datetime):
        raise MalformedRowError(f"{record}.{column} is not a timestamp: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Repository:
    """A named, owner-scoped container for one history and one working tree."""

    id: str
    owner_id: str
    owner: str
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Row) -> "Repository":
        return cls(
            id=_text(row, "id", "Repository"),
            owner_id=_text(row, "owner_id", "Repository"),
            owner=_text(row, "owner", "Repository"),
            name=_text(row, "name", "Repository"),
            created_at=_timestamp(row, "created_at", "Repository"),
            updated_at=_timestamp(row, "updated_at", "Repository"),
        )


@dataclass(frozen=True)
class Branch:
    """A named pointer to the head commit of one lineage (None before the first commit)."""

    id: str
    repository_id: str
    name: str
    head_commit_id: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Row) -> "Branch":
        return cls(
            id=_text(row, "id", "Branch"),
            repository_id=_text(row, "repository_id", "Branch"),
            name=_text(row, "name", "Branch"),
            head_commit_id=_optional_text(row, "head_commit_id", "Branch"),
            created_at=_timestamp(row, "created_at", "Branch"),
            updated_at=_timestamp(row, "updated_at", "Branch"),
        )


@dataclass(frozen=True)
class Commit:
    """Immutable commit record linked to at most one parent."""

    id: str
    repository_id: str
    branch_id: str | None
    parent_id: str | None
    sha: str
    message: str
    author_name: str
    author_email: str
    created_at: datetime
    # Filled in when the query joins the branches table
    branch_name: str | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:SHORT_SHA_LENGTH]

    @classmethod
    def from_row(cls, row: Row) -> "Commit":
        return cls(
            id=_text(row, "id", "Commit"),
            repository_id=_text(row, "repository_id", "Commit"),
            branch_id=_optional_text(row, "branch_id", "Commit"),
            parent_id=_optional_text(row, "parent_id", "Commit"),
            sha=_text(row, "sha", "Commit"),
            message=_text(row, "message", "Commit"),
            author_name=_text(row, "author_name", "Commit"),
            author_email=_text(row, "author_email", "Commit"),
            created_at=_timestamp(row, "created_at", "Commit"),
            branch_name=_optional_text(row, "branch_name", "Commit"),
        )


@dataclass(frozen=True)
class Snapshot:
    """Immutable full copy of one file taken at commit time."""

    id: str
    repository_id: str
    path: str
    content: str
    content_hash: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: Row) -> "Snapshot":
        return cls(
            id=_text(row, "id", "Snapshot"),
            repository_id=_text(row, "repository_id", "Snapshot"),
            path=_text(row, "path", "Snapshot"),
            content=_text(row, "content", "Snapshot"),
            content_hash=_text(row, "content_hash", "Snapshot"),
            created_at=_timestamp(row, "created_at", "Snapshot"),
        )


@dataclass(frozen=True)
class WorkingFile:
    """One entry of the mutable working tree."""

    repository_id: str
    path: str
    content: str
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Row) -> "WorkingFile":
        return cls(
            repository_id=_text(row, "repository_id", "WorkingFile"),
            path=_text(row, "path", "WorkingFile"),
            content=_text(row, "content", "WorkingFile"),
            updated_at=_timestamp(row, "updated_at", "WorkingFile"),
        )


@dataclass(frozen=True)
class InitResult:
    """Outcome of init: the repository and whether this call created it."""

    repository: Repository
    initialized: bool


class FileState(str, Enum):
    """How a working file differs from the branch head snapshot."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class FileStatus:
    path: str
    state: FileState


@dataclass(frozen=True)
class CommitDetail:
    """A commit together with the paths captured in its snapshot set."""

    commit: Commit
    files: list[str] = field(default_factory=list)
