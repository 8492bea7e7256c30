"""Environment configuration for the versioning service.

All environment access goes through ``env`` so defaults live in one place.
Variables are read on every call, which lets tests monkeypatch them.
A ``.env`` file in the working directory is loaded on import.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from common.constants import DATABASE_PATH, DEFAULT_HISTORY_DEPTH

load_dotenv()


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class Environment:
    """Typed accessors for the service's environment variables."""

    # Backing store

    @staticmethod
    def database_type() -> str:
        """``sqlite`` (default) or ``postgresql``."""
        return os.getenv("DATABASE_TYPE", "sqlite")

    @staticmethod
    def database_path() -> Path:
        """SQLite database file, defaults to ./data/vcs.db."""
        return Path(os.getenv("DATABASE_PATH", str(DATABASE_PATH)))

    @staticmethod
    def postgres_host() -> str:
        return os.getenv("POSTGRES_HOST", "localhost")

    @staticmethod
    def postgres_port() -> int:
        return _int("POSTGRES_PORT", 5432)

    @staticmethod
    def postgres_database() -> str:
        return os.getenv("POSTGRES_DB", "vcs")

    @staticmethod
    def postgres_user() -> str:
        return os.getenv("POSTGRES_USER", "vcs_user")

    @staticmethod
    def postgres_password() -> str:
        return os.getenv("POSTGRES_PASSWORD", "")

    @staticmethod
    def postgres_pool_size() -> int:
        """Connections kept for steady load (default 5)."""
        return _int("POSTGRES_POOL_SIZE", 5)

    @staticmethod
    def postgres_pool_max_overflow() -> int:
        """Extra connections allowed under burst load (default 10)."""
        return _int("POSTGRES_POOL_MAX_OVERFLOW", 10)

    # Engine

    @staticmethod
    def history_depth() -> int:
        """Maximum commits returned by one log call.

        Returns:
            HISTORY_DEPTH, or 50 when unset or not positive
        """
        depth = _int("HISTORY_DEPTH", DEFAULT_HISTORY_DEPTH)
        return depth if depth > 0 else DEFAULT_HISTORY_DEPTH

    @staticmethod
    def owner_id() -> str | None:
        """Owner id the CLI uses when --owner-id is not given."""
        return os.getenv("VCS_OWNER_ID") or None

    # Logging and API server

    @staticmethod
    def log_level() -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def api_host() -> str:
        return os.getenv("API_HOST", "127.0.0.1")

    @staticmethod
    def api_port() -> int:
        """API server port (default 4000)."""
        return _int("API_PORT", 4000)

    @staticmethod
    def cors_origins() -> list[str]:
        """Allowed browser origins from comma-separated CORS_ORIGINS.

        Defaults to the local frontend dev servers.
        """
        raw = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


# Singleton instance for convenient access
env = Environment()
