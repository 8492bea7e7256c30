"""Backing-store layer for the snapshot versioning engine.

This package provides a consistent interface for relational storage across
SQLite and PostgreSQL backends.

Example:
    >>> from vcs.db import DatabaseConfig, create_database
    >>>
    >>> config = DatabaseConfig(db_type="sqlite", db_path="data/vcs.db")
    >>> adapter = create_database(config)
    >>>
    >>> adapter.connect()
    >>> adapter.create_schema()
    >>> with adapter.transaction():
    ...     adapter.execute("DELETE FROM working_files WHERE repository_id = ?", ("r1",))
    >>> adapter.close()
"""

from .factory import DatabaseConfig, config_from_env, create_database, get_adapter
from .interface import DatabaseAdapter
from .types import (
    ConnectionError,
    DatabaseError,
    DatabaseType,
    IntegrityError,
    Row,
    SchemaError,
    TransactionError,
)

__all__ = [
    # Factory
    "DatabaseConfig",
    "config_from_env",
    "create_database",
    "get_adapter",
    # Interface
    "DatabaseAdapter",
    # Types and exceptions
    "DatabaseType",
    "DatabaseError",
    "ConnectionError",
    "IntegrityError",
    "TransactionError",
    "SchemaError",
    "Row",
]
