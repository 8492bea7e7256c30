"""Build adapters from explicit settings or from the environment."""

from dataclasses import dataclass
from pathlib import Path

from .interface import DatabaseAdapter
from .sqlite_adapter import SQLiteAdapter
from .types import DatabaseType


@dataclass
class DatabaseConfig:
    """Connection settings for one backing store.

    ``db_path`` applies to SQLite only; the remaining fields to PostgreSQL.
    The type may be given as a string in any case.
    """

    db_type: DatabaseType | str
    db_path: Path | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    pool_size: int = 5
    pool_max_overflow: int = 10

    def __post_init__(self):
        if not isinstance(self.db_type, DatabaseType):
            known = ", ".join(t.value for t in DatabaseType)
            try:
                self.db_type = DatabaseType(str(self.db_type).lower())
            except ValueError as e:
                raise ValueError(
                    f"Unsupported database type: {self.db_type}. Must be one of: {known}"
                ) from e

        if self.db_type is DatabaseType.SQLITE:
            if self.db_path is None:
                raise ValueError("db_path is required for SQLite")
            self.db_path = Path(self.db_path)
        elif not (self.host and self.database and self.user):
            raise ValueError("host, database, and user are required for PostgreSQL")
        elif self.port is None:
            self.port = 5432


def create_database(config: DatabaseConfig) -> DatabaseAdapter:
    """Instantiate the adapter for ``config`` without connecting it.

    Example:
        >>> adapter = create_database(DatabaseConfig("sqlite", db_path=Path("data/vcs.db")))
        >>> with adapter:
        ...     adapter.create_schema()
    """
    if config.db_type is DatabaseType.SQLITE:
        return SQLiteAdapter(config.db_path)

    # psycopg is an optional extra; only import it when asked for
    from .postgres_adapter import PostgreSQLAdapter

    return PostgreSQLAdapter(
        host=config.host,
        port=config.port,
        database=config.database,
        user=config.user,
        password=config.password,
        pool_size=config.pool_size,
        pool_max_overflow=config.pool_max_overflow,
    )


def config_from_env() -> DatabaseConfig:
    """Settings selected by DATABASE_TYPE and the matching variables."""
    from common.env import env

    if env.database_type().lower() != DatabaseType.POSTGRESQL.value:
        return DatabaseConfig(DatabaseType.SQLITE, db_path=env.database_path())

    return DatabaseConfig(
        DatabaseType.POSTGRESQL,
        host=env.postgres_host(),
        port=env.postgres_port(),
        database=env.postgres_database(),
        user=env.postgres_user(),
        password=env.postgres_password(),
        pool_size=env.postgres_pool_size(),
        pool_max_overflow=env.postgres_pool_max_overflow(),
    )


def get_adapter() -> DatabaseAdapter:
    """A new, unconnected adapter for the configured store. The caller closes it."""
    return create_database(config_from_env())
