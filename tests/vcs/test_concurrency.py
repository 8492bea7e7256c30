"""Tests for the compare-and-swap head update and cross-connection behaviour."""

import pytest

from vcs.db.sqlite_adapter import SQLiteAdapter
from vcs.engine import SnapshotEngine
from vcs.errors import ConflictError


class TestAdvanceHead:
    """Tests for BranchDirectory.advance_head."""

    def test_swap_from_none_fails_once_head_is_set(self, engine, adapter, repo, owner_id):
        [main] = engine.list_branches(repo, owner_id=owner_id)
        commit = engine.commit(repo, "main", "first", owner_id=owner_id)

        # The commit above already moved it; a second swap from None must fail
        assert engine.branches.advance_head(main.id, None, commit.id) is False

    def test_swap_requires_matching_head(self, engine, adapter, repo, owner_id):
        k1 = engine.commit(repo, "main", "first", owner_id=owner_id)
        k2 = engine.commit(repo, "main", "second", owner_id=owner_id)
        [main] = engine.list_branches(repo, owner_id=owner_id)

        assert engine.branches.advance_head(main.id, k1.id, k1.id) is False
        assert engine.branches.advance_head(main.id, k2.id, k1.id) is True
        adapter.commit()

        [main] = engine.list_branches(repo, owner_id=owner_id)
        assert main.head_commit_id == k1.id


class TestOptimisticCommit:
    """Commits only advance a head they started from."""

    def test_lost_race_is_conflict_and_rolls_back(self, engine, adapter, repo, owner_id, monkeypatch):
        engine.write_file(repo, "a.txt", "hello", owner_id=owner_id)
        monkeypatch.setattr(
            engine.branches, "advance_head", lambda branch_id, expected, new: False
        )

        with pytest.raises(ConflictError, match="updated by another commit"):
            engine.commit(repo, "main", "first", owner_id=owner_id)

        assert adapter.fetchscalar("SELECT COUNT(*) FROM commits") == 0
        assert adapter.fetchscalar("SELECT COUNT(*) FROM snapshots") == 0

    def test_expected_head_matches(self, engine, repo, owner_id):
        k1 = engine.commit(repo, "main", "first", owner_id=owner_id, expected_head=None)
        k2 = engine.commit(repo, "main", "second", owner_id=owner_id, expected_head=k1.id)
        assert k2.parent_id == k1.id

    def test_stale_expected_head(self, engine, adapter, repo, owner_id):
        k1 = engine.commit(repo, "main", "first", owner_id=owner_id)
        engine.commit(repo, "main", "second", owner_id=owner_id)

        with pytest.raises(ConflictError, match="expected"):
            engine.commit(repo, "main", "stale", owner_id=owner_id, expected_head=k1.id)

        assert adapter.fetchscalar("SELECT COUNT(*) FROM commits") == 2

    def test_expected_empty_branch(self, engine, repo, owner_id):
        engine.commit(repo, "main", "first", owner_id=owner_id)

        with pytest.raises(ConflictError):
            engine.commit(repo, "main", "again", owner_id=owner_id, expected_head=None)


class TestTwoConnections:
    """Two engines on the same SQLite file behave like two server workers."""

    @pytest.fixture
    def second_engine(self, db_path):
        other = SQLiteAdapter(db_path)
        other.connect()
        yield SnapshotEngine(other, history_depth=50)
        other.close()

    def test_commits_are_serialized(self, engine, second_engine, repo, owner_id):
        k1 = engine.commit(repo, "main", "from worker 1", owner_id=owner_id)
        k2 = second_engine.commit(repo, "main", "from worker 2", owner_id=owner_id)

        assert k2.parent_id == k1.id
        log = second_engine.log(repo, "main", owner_id=owner_id)
        assert [c.id for c in log] == [k2.id, k1.id]

    def test_stale_reader_gets_conflict(self, engine, second_engine, repo, owner_id):
        [main] = second_engine.list_branches(repo, owner_id=owner_id)
        engine.commit(repo, "main", "worker 1 wins", owner_id=owner_id)

        with pytest.raises(ConflictError):
            second_engine.commit(
                repo, "main", "worker 2 loses", owner_id=owner_id,
                expected_head=main.head_commit_id,
            )

    def test_working_tree_is_shared(self, engine, second_engine, repo, owner_id):
        engine.write_file(repo, "a.txt", "written by 1", owner_id=owner_id)
        assert second_engine.read_file(repo, "a.txt", owner_id=owner_id).content == "written by 1"
