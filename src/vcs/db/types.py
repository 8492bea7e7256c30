"""Shared types and exceptions for the backing-store layer.

Every driver-level failure (sqlite3, psycopg) is re-raised as one of the
exceptions below so that callers above the adapter never import a driver.
"""

from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported backing stores."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DatabaseError(Exception):
    """Base exception for backing-store operations."""

    pass


class ConnectionError(DatabaseError):
    """The store could not be reached or no connection is open."""

    pass


class IntegrityError(DatabaseError):
    """A uniqueness or foreign-key constraint rejected the statement."""

    pass


class TransactionError(DatabaseError):
    """A transaction could not be started, committed or rolled back."""

    pass


class SchemaError(DatabaseError):
    """The schema file is missing or could not be applied."""

    pass


# A row as returned by fetchone/fetchall: column name -> value
Row = dict[str, Any]
