"""Repository registry: create and look up repositories by (owner_id, name)."""

import uuid

from vcs.db import DatabaseAdapter
from vcs.errors import NotFoundError
from vcs.models import Repository, utcnow


class RepositoryRegistry:
    """Rows of the ``repositories`` table, always scoped by owner id."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def find(self, owner_id: str, name: str) -> Repository | None:
        row = self.adapter.fetchone(
            "SELECT * FROM repositories WHERE owner_id = ? AND name = ?",
            (owner_id, name),
        )
        return Repository.from_row(row) if row else None

    def require(self, owner_id: str, name: str) -> Repository:
        """Look up a repository or raise NotFoundError."""
        repository = self.find(owner_id, name)
        if repository is None:
            raise NotFoundError(f"Repository '{name}' not found")
        return repository

    def create(self, owner: str, name: str, owner_id: str) -> Repository:
        """Insert a repository row.

        Must run inside the caller's transaction; the default branch is
        created by the engine in the same unit of work.

        Raises:
            IntegrityError: If (owner_id, name) already exists
        """
        now = utcnow()
        repository = Repository(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            owner=owner,
            name=name,
            created_at=now,
            updated_at=now,
        )
        self.adapter.execute(
            """
            INSERT INTO repositories (id, owner_id, owner, name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                repository.id,
                repository.owner_id,
                repository.owner,
                repository.name,
                now.isoformat(),
                now.isoformat(),
            ),
        )
        return repository

    def touch(self, repository_id: str) -> None:
        """Bump updated_at, the only column that changes after creation."""
        self.adapter.execute(
            "UPDATE repositories SET updated_at = ? WHERE id = ?",
            (utcnow().isoformat(), repository_id),
        )

    def list_by_owner(self, owner_id: str) -> list[Repository]:
        """All repositories of an owner, newest first."""
        rows = self.adapter.fetchall(
            "SELECT * FROM repositories WHERE owner_id = ? ORDER BY created_at DESC, name",
            (owner_id,),
        )
        return [Repository.from_row(row) for row in rows]
