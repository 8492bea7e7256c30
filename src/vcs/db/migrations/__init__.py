"""Schema migrations for the versioning store.

Numbered SQL files are applied in order on top of the base schema and
recorded in the ``schema_version`` table.
"""

from .runner import MigrationRunner

__all__ = ["MigrationRunner"]
