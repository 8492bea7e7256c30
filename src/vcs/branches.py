"""Branch directory: named head pointers, one namespace per repository."""

import uuid

from vcs.db import DatabaseAdapter
from vcs.errors import NotFoundError
from vcs.models import Branch, utcnow


class BranchDirectory:
    """Rows of the ``branches`` table."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def find(self, repository_id: str, name: str) -> Branch | None:
        row = self.adapter.fetchone(
            "SELECT * FROM branches WHERE repository_id = ? AND name = ?",
            (repository_id, name),
        )
        return Branch.from_row(row) if row else None

    def require(self, repository_id: str, name: str) -> Branch:
        branch = self.find(repository_id, name)
        if branch is None:
            raise NotFoundError(f"Branch '{name}' not found")
        return branch

    def list_by_repository(self, repository_id: str) -> list[Branch]:
        rows = self.adapter.fetchall(
            "SELECT * FROM branches WHERE repository_id = ? ORDER BY name",
            (repository_id,),
        )
        return [Branch.from_row(row) for row in rows]

    def insert(self, repository_id: str, name: str, head_commit_id: str | None) -> Branch:
        """Insert a branch pointing at ``head_commit_id``.

        The head is stored by value: later commits on the branch it was
        copied from do not move it.

        Raises:
            IntegrityError: If the name is already taken in this repository
        """
        now = utcnow()
        branch = Branch(
            id=str(uuid.uuid4()),
            repository_id=repository_id,
            name=name,
            head_commit_id=head_commit_id,
            created_at=now,
            updated_at=now,
        )
        self.adapter.execute(
            """
            INSERT INTO branches (id, repository_id, name, head_commit_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (branch.id, repository_id, name, head_commit_id, now.isoformat(), now.isoformat()),
        )
        return branch

    def advance_head(self, branch_id: str, expected_head: str | None, new_head: str) -> bool:
        """Move a branch head only if it still points at ``expected_head``.

        Returns:
            True if the head was moved, False if another writer moved it first
        """
        if expected_head is None:
            condition, params = "head_commit_id IS NULL", (new_head, utcnow().isoformat(), branch_id)
        else:
            condition = "head_commit_id = ?"
            params = (new_head, utcnow().isoformat(), branch_id, expected_head)

        cursor = self.adapter.execute(
            f"UPDATE branches SET head_commit_id = ?, updated_at = ? WHERE id = ? AND {condition}",
            params,
        )
        return cursor.rowcount == 1
