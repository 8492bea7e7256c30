"""Commit history store and the parent-chain walker behind ``log``."""

import hashlib
import uuid
from datetime import datetime

from common.logger import get_logger
from vcs.db import DatabaseAdapter
from vcs.models import Commit, Snapshot

logger = get_logger(__name__)

_COMMIT_COLUMNS = """
    c.id, c.repository_id, c.branch_id, c.parent_id, c.sha, c.message,
    c.author_name, c.author_email, c.created_at, b.name AS branch_name
"""


def compute_sha(
    parent_id: str | None,
    message: str,
    author_name: str,
    author_email: str,
    created_at: datetime,
    snapshots: list[Snapshot],
) -> str:
    """Derive the commit sha from its metadata and the hashes of its files."""
    digest = hashlib.sha1()
    digest.update(f"parent {parent_id or ''}\n".encode())
    digest.update(f"author {author_name} <{author_email}> {created_at.isoformat()}\n".encode())
    for snapshot in sorted(snapshots, key=lambda s: s.path):
        digest.update(f"file {snapshot.content_hash} {snapshot.path}\n".encode())
    digest.update(b"\n")
    digest.update(message.encode("utf-8"))
    return digest.hexdigest()


class CommitHistory:
    """Rows of the ``commits`` table; commits are written once and never changed."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def create(
        self,
        repository_id: str,
        branch_id: str | None,
        parent_id: str | None,
        message: str,
        author_name: str,
        author_email: str,
        created_at: datetime,
        snapshots: list[Snapshot],
    ) -> Commit:
        commit = Commit(
            id=str(uuid.uuid4()),
            repository_id=repository_id,
            branch_id=branch_id,
            parent_id=parent_id,
            sha=compute_sha(parent_id, message, author_name, author_email, created_at, snapshots),
            message=message,
            author_name=author_name,
            author_email=author_email,
            created_at=created_at,
        )
        self.adapter.execute(
            """
            INSERT INTO commits (
                id, repository_id, branch_id, parent_id, sha,
                message, author_name, author_email, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                commit.id,
                repository_id,
                branch_id,
                parent_id,
                commit.sha,
                message,
                author_name,
                author_email,
                created_at.isoformat(),
            ),
        )
        return commit

    def get(self, repository_id: str, commit_id: str) -> Commit | None:
        """Fetch a commit of this repository by id."""
        row = self.adapter.fetchone(
            f"""
            SELECT {_COMMIT_COLUMNS}
            FROM commits c LEFT JOIN branches b ON b.id = c.branch_id
            WHERE c.repository_id = ? AND c.id = ?
            """,
            (repository_id, commit_id),
        )
        return Commit.from_row(row) if row else None

    def resolve(self, repository_id: str, reference: str) -> Commit | None:
        """Find a commit by id, full sha or unambiguous sha prefix."""
        commit = self.get(repository_id, reference)
        if commit is not None:
            return commit

        rows = self.adapter.fetchall(
            f"""
            SELECT {_COMMIT_COLUMNS}
            FROM commits c LEFT JOIN branches b ON b.id = c.branch_id
            WHERE c.repository_id = ? AND substr(c.sha, 1, ?) = ?
            LIMIT 2
            """,
            (repository_id, len(reference), reference),
        )
        if len(rows) != 1:
            return None
        return Commit.from_row(rows[0])

    def walk(self, repository_id: str, head_commit_id: str | None, depth: int) -> list[Commit]:
        """Follow parent links from ``head_commit_id``, newest first.

        Stops at the root commit, after ``depth`` commits, or at the first
        parent id that does not resolve. Never writes.
        """
        entries: list[Commit] = []
        seen: set[str] = set()
        commit_id = head_commit_id

        while commit_id and len(entries) < depth:
            if commit_id in seen:
                logger.warning(f"History cycle detected at commit {commit_id}, stopping walk")
                break
            seen.add(commit_id)

            commit = self.get(repository_id, commit_id)
            if commit is None:
                logger.warning(f"History chain broken: commit {commit_id} not found, stopping walk")
                break

            entries.append(commit)
            commit_id = commit.parent_id

        return entries
