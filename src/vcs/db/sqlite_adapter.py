"""SQLite adapter: an embedded, single-file backing store.

Write transactions are opened with ``BEGIN IMMEDIATE``, which takes the
database write lock up front. A second writer on another connection waits up
to ``timeout`` seconds for the lock instead of interleaving with the first.
"""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .interface import DatabaseAdapter
from .types import ConnectionError as DBConnectionError
from .types import DatabaseError, Row, SchemaError, TransactionError
from .types import IntegrityError as DBIntegrityError


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Re-raise sqlite3 exceptions as backing-store exceptions."""
    try:
        yield
    except sqlite3.IntegrityError as e:
        raise DBIntegrityError(f"Integrity constraint violation: {e}") from e
    except sqlite3.Error as e:
        raise DatabaseError(f"{action} failed: {e}") from e


class SQLiteAdapter(DatabaseAdapter):
    """DatabaseAdapter over the standard library ``sqlite3`` module."""

    def __init__(self, db_path: str | Path, timeout: float = 5.0):
        """
        Args:
            db_path: Database file, created (with its directory) on connect
            timeout: Seconds to wait for another connection's write lock
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._schema_file = Path(__file__).parent / "schema_sqlite.sql"

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DBConnectionError("No active connection")
        return self._conn

    def connect(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
            conn.row_factory = sqlite3.Row
            # The schema's REFERENCES clauses are ignored unless this is on
            conn.execute("PRAGMA foreign_keys = ON")
        except (sqlite3.Error, OSError) as e:
            raise DBConnectionError(f"Cannot open SQLite database {self.db_path}: {e}") from e
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def exists(self) -> bool:
        return self.db_path.exists()

    def delete(self) -> None:
        """Close the connection and remove the database file."""
        self.close()
        self.db_path.unlink(missing_ok=True)

    def begin(self, write: bool = True) -> None:
        conn = self._connection()
        # A statement already opened an implicit transaction; join it
        if conn.in_transaction:
            return
        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
        except sqlite3.Error as e:
            raise TransactionError(f"Cannot begin transaction: {e}") from e

    def commit(self) -> None:
        try:
            self._connection().commit()
        except sqlite3.Error as e:
            raise TransactionError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        try:
            self._connection().rollback()
        except sqlite3.Error as e:
            raise TransactionError(f"Rollback failed: {e}") from e

    def create_schema(self) -> None:
        conn = self._connection()
        try:
            script = self._schema_file.read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaError(f"Cannot read schema file {self._schema_file}: {e}") from e
        try:
            conn.executescript(script)
            conn.commit()
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to create schema: {e}") from e

    def drop_schema(self) -> None:
        conn = self._connection()
        try:
            conn.execute("PRAGMA foreign_keys = OFF")
            for table in self.get_tables():
                conn.execute(f"DROP TABLE IF EXISTS {table}")
            conn.commit()
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to drop schema: {e}") from e

    def get_tables(self) -> list[str]:
        rows = self.fetchall(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row["name"] for row in rows]

    def get_table_schema(self, table_name: str) -> list[Row]:
        rows = self.fetchall(f"PRAGMA table_info({table_name})")
        return [
            {
                "name": row["name"],
                "type": row["type"],
                "notnull": row["notnull"],
                "default": row["dflt_value"],
                "pk": row["pk"],
            }
            for row in rows
        ]

    def execute(self, query: str, params: tuple | None = None) -> Any:
        conn = self._connection()
        with _translate_errors("Query"):
            return conn.execute(query, params or ())

    def executescript(self, script: str) -> None:
        """Run a multi-statement script. sqlite3 commits any open transaction first."""
        conn = self._connection()
        with _translate_errors("Script"):
            conn.executescript(script)

    def fetchone(self, query: str, params: tuple | None = None) -> Row | None:
        row = self.execute(query, params).fetchone()
        return dict(row) if row is not None else None

    def fetchall(self, query: str, params: tuple | None = None) -> list[Row]:
        return [dict(row) for row in self.execute(query, params).fetchall()]

    def __repr__(self) -> str:
        state = "connected" if self._conn is not None else "disconnected"
        return f"SQLiteAdapter(db_path={self.db_path}, status={state})"
