"""GraphQL type definitions for the versioning API."""

from datetime import datetime
from enum import Enum

import strawberry

from vcs import models


@strawberry.type
class Repository:
    """Owner-scoped repository."""

    name: str
    owner: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, repository: models.Repository) -> "Repository":
        return cls(
            name=repository.name,
            owner=repository.owner,
            created_at=repository.created_at,
            updated_at=repository.updated_at,
        )


@strawberry.type
class InitResult:
    initialized: bool
    repository: Repository


@strawberry.type
class TreeEntry:
    path: str


@strawberry.type
class FileContent:
    path: str
    content: str
    updated_at: datetime


@strawberry.type
class WriteResult:
    path: str


@strawberry.type
class DeleteResult:
    ok: bool
    # False when the path was not in the working tree
    existed: bool


@strawberry.type
class Branch:
    name: str
    head: str | None = None


@strawberry.type
class LogEntry:
    """One commit as shown in history listings."""

    commit_id: str
    sha: str
    parent: str | None
    message: str
    author: str
    author_email: str
    branch: str | None
    timestamp: datetime

    @classmethod
    def from_model(cls, commit: models.Commit) -> "LogEntry":
        return cls(
            commit_id=commit.id,
            sha=commit.sha,
            parent=commit.parent_id,
            message=commit.message,
            author=commit.author_name,
            author_email=commit.author_email,
            branch=commit.branch_name,
            timestamp=commit.created_at,
        )


@strawberry.type
class CommitResult:
    commit_id: str
    sha: str


@strawberry.type
class CommitDetail:
    entry: LogEntry
    files: list[str]


@strawberry.type
class CheckoutResult:
    branch: str


@strawberry.enum
class FileState(Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNCHANGED = "unchanged"


@strawberry.type
class FileChange:
    path: str
    state: FileState
