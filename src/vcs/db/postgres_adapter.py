"""PostgreSQL adapter on psycopg 3 with a shared connection pool.

Each adapter borrows one connection from a pool kept per connection string,
so per-request adapters do not pay for a new server connection. psycopg opens
a transaction implicitly with the first statement; the branch-head
compare-and-swap in the engine is what keeps concurrent commits consistent
under READ COMMITTED.
"""

from pathlib import Path
from typing import Any

try:
    import psycopg
    from psycopg import pq
    from psycopg.conninfo import make_conninfo
    from psycopg.rows import dict_row
    from psycopg_pool import ConnectionPool
except ImportError as e:
    raise ImportError(
        "PostgreSQL support needs psycopg and psycopg-pool. "
        'Install with: pip install -e ".[postgresql]"'
    ) from e

from common.logger import get_logger

from .interface import DatabaseAdapter
from .types import ConnectionError as DBConnectionError
from .types import DatabaseError, Row, SchemaError, TransactionError
from .types import IntegrityError as DBIntegrityError

logger = get_logger(__name__)

_pools: dict[str, ConnectionPool] = {}


def close_pools() -> None:
    """Close every pool opened by this process (application shutdown)."""
    while _pools:
        _, pool = _pools.popitem()
        pool.close()


class PostgreSQLAdapter(DatabaseAdapter):
    """DatabaseAdapter over psycopg 3; queries use ``?`` and are rewritten to ``%s``."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "vcs",
        user: str = "vcs_user",
        password: str = "",
        pool_size: int = 5,
        pool_max_overflow: int = 10,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.pool_size = pool_size
        self.pool_max_overflow = pool_max_overflow

        self._pool: ConnectionPool | None = None
        self._conn: psycopg.Connection | None = None
        self._schema_file = Path(__file__).parent / "schema_postgresql.sql"

    @property
    def conninfo(self) -> str:
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
        )

    def _connection(self) -> psycopg.Connection:
        if self._conn is None:
            raise DBConnectionError("No active connection")
        return self._conn

    def _get_pool(self) -> ConnectionPool:
        pool = _pools.get(self.conninfo)
        if pool is None:
            pool = ConnectionPool(
                self.conninfo,
                min_size=1,
                max_size=self.pool_size + self.pool_max_overflow,
                open=True,
            )
            _pools[self.conninfo] = pool
            logger.debug(f"Opened PostgreSQL pool for {self.host}:{self.port}/{self.database}")
        return pool

    def connect(self) -> None:
        try:
            self._pool = self._get_pool()
            self._conn = self._pool.getconn()
        except psycopg.Error as e:
            raise DBConnectionError(f"Cannot connect to PostgreSQL: {e}") from e
        self._conn.row_factory = dict_row

    def close(self) -> None:
        """Return the connection to the pool, discarding any open transaction."""
        if self._conn is not None and self._pool is not None:
            if self._conn.info.transaction_status != pq.TransactionStatus.IDLE:
                self._conn.rollback()
            self._pool.putconn(self._conn)
        self._conn = None
        self._pool = None

    def exists(self) -> bool:
        """Whether the server is reachable and the schema has tables."""
        try:
            if self._conn is None:
                self.connect()
            return bool(self.get_tables())
        except DatabaseError:
            return False

    def delete(self) -> None:
        """Drop the tables; the database itself belongs to the server admin."""
        self.drop_schema()

    def begin(self, write: bool = True) -> None:
        """Finish any transaction left open by earlier reads.

        The next statement then opens a new transaction with a fresh snapshot.
        """
        conn = self._connection()
        try:
            if conn.info.transaction_status == pq.TransactionStatus.INTRANS:
                conn.commit()
        except psycopg.Error as e:
            raise TransactionError(f"Cannot begin transaction: {e}") from e

    def commit(self) -> None:
        try:
            self._connection().commit()
        except psycopg.Error as e:
            raise TransactionError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        try:
            self._connection().rollback()
        except psycopg.Error as e:
            raise TransactionError(f"Rollback failed: {e}") from e

    def create_schema(self) -> None:
        try:
            script = self._schema_file.read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaError(f"Cannot read schema file {self._schema_file}: {e}") from e

        conn = self._connection()
        try:
            conn.execute(script)
            conn.commit()
        except psycopg.Error as e:
            conn.rollback()
            raise SchemaError(f"Failed to create schema: {e}") from e

    def drop_schema(self) -> None:
        conn = self._connection()
        try:
            for table in self.get_tables():
                conn.execute(f'DROP TABLE IF EXISTS "{table}" CASCADE')
            conn.commit()
        except (psycopg.Error, DatabaseError) as e:
            conn.rollback()
            raise SchemaError(f"Failed to drop schema: {e}") from e

    def get_tables(self) -> list[str]:
        rows = self.fetchall(
            """
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = 'public' AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """
        )
        return [row["table_name"] for row in rows]

    def get_table_schema(self, table_name: str) -> list[Row]:
        return self.fetchall(
            """
            SELECT
                c.column_name AS name,
                c.data_type AS type,
                CASE WHEN c.is_nullable = 'NO' THEN 1 ELSE 0 END AS notnull,
                c.column_default AS "default",
                CASE WHEN EXISTS (
                    SELECT 1 FROM pg_index i
                    JOIN pg_attribute a ON a.attrelid = i.indrelid AND a.attnum = ANY(i.indkey)
                    WHERE i.indrelid = c.table_name::text::regclass
                      AND i.indisprimary AND a.attname = c.column_name
                ) THEN 1 ELSE 0 END AS pk
            FROM information_schema.columns c
            WHERE c.table_schema = 'public' AND c.table_name = ?
            ORDER BY c.ordinal_position
            """,
            (table_name,),
        )

    def execute(self, query: str, params: tuple | None = None) -> Any:
        conn = self._connection()
        try:
            return conn.execute(query.replace("?", "%s"), params or None)
        except psycopg.errors.IntegrityError as e:
            raise DBIntegrityError(f"Integrity constraint violation: {e}") from e
        except psycopg.Error as e:
            raise DatabaseError(f"Query failed: {e}") from e

    def executescript(self, script: str) -> None:
        """Run a multi-statement script inside the current transaction."""
        conn = self._connection()
        try:
            conn.execute(script)
        except psycopg.errors.IntegrityError as e:
            raise DBIntegrityError(f"Integrity constraint violation: {e}") from e
        except psycopg.Error as e:
            raise DatabaseError(f"Script failed: {e}") from e

    def fetchone(self, query: str, params: tuple | None = None) -> Row | None:
        return self.execute(query, params).fetchone()

    def fetchall(self, query: str, params: tuple | None = None) -> list[Row]:
        return self.execute(query, params).fetchall()

    def __repr__(self) -> str:
        state = "connected" if self._conn is not None else "disconnected"
        return (
            f"PostgreSQLAdapter(host={self.host}, port={self.port}, "
            f"database={self.database}, status={state})"
        )
