"""Abstract backing-store adapter.

The versioning stores only talk to this interface. Queries are written once
with ``?`` placeholders; each adapter maps them to its driver's paramstyle and
translates driver exceptions into the types in ``vcs.db.types``.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .types import Row


class DatabaseAdapter(ABC):
    """One connection (or pooled connection) to a relational backing store.

    An adapter is not shared between requests. Open it with ``connect()`` or
    a ``with`` block, and hand it to a single engine.
    """

    # Connection lifecycle

    @abstractmethod
    def connect(self) -> None:
        """Open the connection.

        Raises:
            ConnectionError: If the store cannot be reached
        """

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Safe to call when already closed."""

    @abstractmethod
    def exists(self) -> bool:
        """Whether the backing store is present (file on disk, or tables on the server)."""

    @abstractmethod
    def delete(self) -> None:
        """Remove the store entirely: the SQLite file, or every table on PostgreSQL."""

    # Transactions

    @abstractmethod
    def begin(self, write: bool = True) -> None:
        """Start a transaction.

        Args:
            write: The block will modify rows. SQLite takes its write lock
                immediately so two writers never interleave.

        Raises:
            TransactionError: If the transaction cannot be started
        """

    @abstractmethod
    def commit(self) -> None:
        """Commit the open transaction (TransactionError on failure)."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard the open transaction (TransactionError on failure)."""

    @contextmanager
    def transaction(self, write: bool = True) -> Iterator["DatabaseAdapter"]:
        """Group statements into one atomic unit.

        The block is committed if it finishes and rolled back if it raises
        anything, so other connections see either all of its rows or none.

        Example:
            >>> with adapter.transaction():
            ...     adapter.execute("DELETE FROM working_files WHERE repository_id = ?", (rid,))
            ...     adapter.execute("INSERT INTO working_files ...", (...))
        """
        self.begin(write=write)
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    # Schema

    @abstractmethod
    def create_schema(self) -> None:
        """Create the versioning tables and indexes if they are missing.

        Raises:
            SchemaError: If the schema file is missing or fails to apply
        """

    @abstractmethod
    def drop_schema(self) -> None:
        """Drop every table, keeping the store itself (SchemaError on failure)."""

    def run_migrations(self) -> int:
        """Apply pending files from the migrations directory.

        Returns:
            Number of migrations applied
        """
        from .migrations import MigrationRunner

        return MigrationRunner(self).run_migrations()

    @abstractmethod
    def get_tables(self) -> list[str]:
        """Names of the user tables, sorted."""

    @abstractmethod
    def get_table_schema(self, table_name: str) -> list[Row]:
        """Column descriptions of a table.

        Returns:
            One dict per column with ``name``, ``type``, ``notnull`` (0/1),
            ``default`` and ``pk`` (0/1)
        """

    # Queries

    @abstractmethod
    def execute(self, query: str, params: tuple | None = None) -> Any:
        """Run one statement and return the driver cursor.

        ``cursor.rowcount`` is what the stores use to detect a lost
        compare-and-swap update.

        Raises:
            IntegrityError: If a constraint rejects the statement
            DatabaseError: For any other driver failure
        """

    @abstractmethod
    def executescript(self, script: str) -> None:
        """Run several ``;``-separated statements without parameters."""

    @abstractmethod
    def fetchone(self, query: str, params: tuple | None = None) -> Row | None:
        """First row of the result as a dict, or None."""

    @abstractmethod
    def fetchall(self, query: str, params: tuple | None = None) -> list[Row]:
        """Every row of the result as a dict."""

    def fetchscalar(self, query: str, params: tuple | None = None) -> Any:
        """First column of the first row, e.g. for ``SELECT COUNT(*)``."""
        row = self.fetchone(query, params)
        if row is None:
            return None
        return next(iter(row.values()))

    def __enter__(self) -> "DatabaseAdapter":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self.close()
        return False
