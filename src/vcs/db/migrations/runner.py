"""Apply numbered SQL migrations on top of the base schema."""

from pathlib import Path
from typing import TYPE_CHECKING

from common.logger import get_logger

if TYPE_CHECKING:
    from vcs.db.interface import DatabaseAdapter

logger = get_logger(__name__)

VERSIONS_DIR = Path(__file__).parent / "versions"

Migration = tuple[int, str, Path]


class MigrationRunner:
    """Track and apply ``NNN_name.sql`` files.

    The base tables come from ``create_schema()``; a migration file is only
    needed for changes made after a store was first created. Applied versions
    are recorded in ``schema_version`` so each file runs once per store.
    """

    def __init__(self, adapter: "DatabaseAdapter", migrations_dir: Path | None = None):
        self.adapter = adapter
        self.migrations_dir = migrations_dir or VERSIONS_DIR

    def ensure_migration_table(self) -> None:
        self.adapter.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        self.adapter.commit()

    def get_current_version(self) -> int:
        """Highest applied version, 0 for a store with none."""
        self.ensure_migration_table()
        version = self.adapter.fetchscalar("SELECT MAX(version) AS version FROM schema_version")
        return version or 0

    def _parse(self, filepath: Path) -> Migration | None:
        number, _, name = filepath.stem.partition("_")
        if not number.isdigit() or not name:
            logger.warning(f"Ignoring migration file with unexpected name: {filepath.name}")
            return None
        return int(number), name, filepath

    def get_pending_migrations(self) -> list[Migration]:
        """Migrations newer than the current version, oldest first."""
        if not self.migrations_dir.exists():
            return []

        current = self.get_current_version()
        parsed = (self._parse(path) for path in self.migrations_dir.glob("*.sql"))
        return sorted(
            (migration for migration in parsed if migration and migration[0] > current),
            key=lambda migration: migration[0],
        )

    def apply_migration(self, version: int, name: str, filepath: Path) -> None:
        """Run one file and record it; on failure nothing is recorded."""
        self.ensure_migration_table()
        script = filepath.read_text(encoding="utf-8")

        try:
            self.adapter.executescript(script)
            self.adapter.execute(
                "INSERT INTO schema_version (version, name) VALUES (?, ?)", (version, name)
            )
            self.adapter.commit()
        except Exception as e:
            self.adapter.rollback()
            logger.error(f"Migration {version} ({name}) failed: {e}")
            raise

        logger.info(f"Applied migration {version}: {name}")

    def run_migrations(self) -> int:
        """Apply everything pending and return how many files ran."""
        pending = self.get_pending_migrations()
        if not pending:
            logger.debug("Schema is up to date")
            return 0

        for version, name, filepath in pending:
            self.apply_migration(version, name, filepath)
        return len(pending)
