"""Snapshot store: append-only file copies and their commit links."""

import hashlib
import uuid

from vcs.db import DatabaseAdapter
from vcs.models import Snapshot, utcnow


def content_hash(content: str) -> str:
    """SHA-1 of the UTF-8 encoded content."""
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


class SnapshotStore:
    """Rows of the ``snapshots`` and ``commit_snapshots`` tables.

    Nothing here updates or deletes a row once written.
    """

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def create(self, repository_id: str, path: str, content: str) -> Snapshot:
        """Insert a new snapshot, even if an identical one already exists."""
        snapshot = Snapshot(
            id=str(uuid.uuid4()),
            repository_id=repository_id,
            path=path,
            content=content,
            content_hash=content_hash(content),
            created_at=utcnow(),
        )
        self.adapter.execute(
            """
            INSERT INTO snapshots (id, repository_id, path, content, content_hash, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                snapshot.id,
                repository_id,
                path,
                content,
                snapshot.content_hash,
                snapshot.created_at.isoformat(),
            ),
        )
        return snapshot

    def link(self, commit_id: str, snapshots: list[Snapshot]) -> None:
        for snapshot in snapshots:
            self.adapter.execute(
                "INSERT INTO commit_snapshots (commit_id, snapshot_id) VALUES (?, ?)",
                (commit_id, snapshot.id),
            )

    def for_commit(self, commit_id: str) -> list[Snapshot]:
        """The snapshot set linked to a commit, ordered by path."""
        rows = self.adapter.fetchall(
            """
            SELECT s.* FROM snapshots s
            JOIN commit_snapshots cs ON cs.snapshot_id = s.id
            WHERE cs.commit_id = ?
            ORDER BY s.path
            """,
            (commit_id,),
        )
        return [Snapshot.from_row(row) for row in rows]
