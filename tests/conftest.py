"""Shared fixtures: a throwaway SQLite store per test."""

import pytest

from vcs.db.sqlite_adapter import SQLiteAdapter
from vcs.engine import SnapshotEngine


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh SQLite database file."""
    return tmp_path / "vcs.db"


@pytest.fixture
def adapter(db_path):
    """Connected SQLite adapter with the schema created."""
    adapter = SQLiteAdapter(db_path)
    adapter.connect()
    adapter.create_schema()
    yield adapter
    adapter.close()


@pytest.fixture
def engine(adapter):
    return SnapshotEngine(adapter, history_depth=50)


@pytest.fixture
def owner_id():
    return "user-1"


@pytest.fixture
def repo(engine, owner_id):
    """Name of an initialized repository 'acme/demo'."""
    engine.init_repository("acme", "demo", owner_id=owner_id)
    return "demo"


@pytest.fixture
def sqlite_env(monkeypatch, db_path):
    """Point get_adapter() at the per-test SQLite file."""
    monkeypatch.setenv("DATABASE_TYPE", "sqlite")
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    return db_path
