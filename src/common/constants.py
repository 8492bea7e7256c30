"""Shared constants for the snapshot versioning service.

For environment-based configuration (database settings, etc.), use the env module:
    from common.env import env
    db_type = env.database_type()
"""

from pathlib import Path

# Data directories
DATA_DIR = Path("./data")
DATABASE_PATH = DATA_DIR / "vcs.db"

# Branch created by init; also the source of createBranch when none is given
DEFAULT_BRANCH = "main"

# Upper bound on the number of commits a single log call walks
DEFAULT_HISTORY_DEPTH = 50

# Commit fields used when the caller leaves them blank
DEFAULT_COMMIT_MESSAGE = "chore: commit"
DEFAULT_AUTHOR_NAME = "Demo User"
DEFAULT_AUTHOR_EMAIL = "demo@example.com"

# Length of the abbreviated commit sha shown in listings
SHORT_SHA_LENGTH = 7

API_TITLE = "Snapshot VCS API"
API_VERSION = "0.1.0"
