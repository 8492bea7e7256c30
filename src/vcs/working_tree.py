"""Working tree store: the live (path -> content) set of a repository."""

from vcs.db import DatabaseAdapter
from vcs.errors import NotFoundError
from vcs.models import WorkingFile, utcnow


class WorkingTreeStore:
    """Rows of the ``working_files`` table. Last writer to a path wins."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def get(self, repository_id: str, path: str) -> WorkingFile:
        row = self.adapter.fetchone(
            "SELECT * FROM working_files WHERE repository_id = ? AND path = ?",
            (repository_id, path),
        )
        if row is None:
            raise NotFoundError(f"File '{path}' not found")
        return WorkingFile.from_row(row)

    def set(self, repository_id: str, path: str, content: str) -> WorkingFile:
        """Insert or replace the content stored at ``path``."""
        now = utcnow()
        self.adapter.execute(
            """
            INSERT INTO working_files (repository_id, path, content, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(repository_id, path) DO UPDATE SET
                content=excluded.content,
                updated_at=excluded.updated_at
            """,
            (repository_id, path, content, now.isoformat()),
        )
        return WorkingFile(repository_id=repository_id, path=path, content=content, updated_at=now)

    def delete(self, repository_id: str, path: str) -> bool:
        """Remove ``path``; absent paths are not an error.

        Returns:
            True if a row was removed
        """
        cursor = self.adapter.execute(
            "DELETE FROM working_files WHERE repository_id = ? AND path = ?",
            (repository_id, path),
        )
        return cursor.rowcount > 0

    def files(self, repository_id: str) -> list[WorkingFile]:
        """The full working tree, ordered by path."""
        rows = self.adapter.fetchall(
            "SELECT * FROM working_files WHERE repository_id = ? ORDER BY path",
            (repository_id,),
        )
        return [WorkingFile.from_row(row) for row in rows]

    def paths(self, repository_id: str) -> list[str]:
        rows = self.adapter.fetchall(
            "SELECT path FROM working_files WHERE repository_id = ? ORDER BY path",
            (repository_id,),
        )
        return [row["path"] for row in rows]

    def wipe(self, repository_id: str) -> int:
        """Delete every working file of the repository.

        Returns:
            Number of files removed
        """
        cursor = self.adapter.execute(
            "DELETE FROM working_files WHERE repository_id = ?", (repository_id,)
        )
        return cursor.rowcount
