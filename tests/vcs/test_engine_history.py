"""Tests for branches, log, show_commit and status."""

import logging

import pytest

from vcs.engine import SnapshotEngine
from vcs.errors import ConflictError, NotFoundError, ValidationError
from vcs.models import FileState


def _commit_files(engine, repo, owner_id, files, message, branch="main"):
    for path, content in files.items():
        engine.write_file(repo, path, content, owner_id=owner_id)
    return engine.commit(repo, branch, message, owner_id=owner_id)


class TestBranches:
    """Tests for create_branch and list_branches."""

    def test_new_branch_copies_source_head(self, engine, repo, owner_id):
        k1 = _commit_files(engine, repo, owner_id, {"a.txt": "1"}, "first")

        branch = engine.create_branch(repo, "feature", "main", owner_id=owner_id)

        assert branch.name == "feature"
        assert branch.head_commit_id == k1.id

    def test_source_defaults_to_main(self, engine, repo, owner_id):
        k1 = _commit_files(engine, repo, owner_id, {"a.txt": "1"}, "first")
        assert engine.create_branch(repo, "feature", owner_id=owner_id).head_commit_id == k1.id

    def test_branch_from_empty_branch_has_no_head(self, engine, repo, owner_id):
        assert engine.create_branch(repo, "feature", owner_id=owner_id).head_commit_id is None

    def test_branches_are_isolated(self, engine, repo, owner_id):
        k1 = _commit_files(engine, repo, owner_id, {"a.txt": "1"}, "first")
        engine.create_branch(repo, "feature", "main", owner_id=owner_id)

        k2 = _commit_files(engine, repo, owner_id, {"a.txt": "2"}, "on main")

        heads = {b.name: b.head_commit_id for b in engine.list_branches(repo, owner_id=owner_id)}
        assert heads == {"feature": k1.id, "main": k2.id}

        k3 = engine.commit(repo, "feature", "on feature", owner_id=owner_id)
        assert k3.parent_id == k1.id

    def test_list_branches_sorted_by_name(self, engine, repo, owner_id):
        engine.create_branch(repo, "zeta", owner_id=owner_id)
        engine.create_branch(repo, "alpha", owner_id=owner_id)
        engine.create_branch(repo, "feature/x", owner_id=owner_id)

        names = [b.name for b in engine.list_branches(repo, owner_id=owner_id)]
        assert names == ["alpha", "feature/x", "main", "zeta"]

    def test_duplicate_branch(self, engine, repo, owner_id):
        engine.create_branch(repo, "feature", owner_id=owner_id)
        with pytest.raises(ConflictError, match="Branch 'feature' already exists"):
            engine.create_branch(repo, "feature", owner_id=owner_id)

    def test_main_cannot_be_recreated(self, engine, repo, owner_id):
        with pytest.raises(ConflictError):
            engine.create_branch(repo, "main", owner_id=owner_id)

    def test_missing_source_branch(self, engine, repo, owner_id):
        with pytest.raises(NotFoundError, match="Source branch 'nope' not found"):
            engine.create_branch(repo, "feature", "nope", owner_id=owner_id)
        assert [b.name for b in engine.list_branches(repo, owner_id=owner_id)] == ["main"]

    @pytest.mark.parametrize("name", ["", "bad name", "..", "-x", "x/"])
    def test_invalid_branch_name(self, engine, repo, owner_id, name):
        with pytest.raises(ValidationError):
            engine.create_branch(repo, name, owner_id=owner_id)


class TestLog:
    """Tests for SnapshotEngine.log."""

    def test_empty_branch_has_empty_log(self, engine, repo, owner_id):
        assert engine.log(repo, "main", owner_id=owner_id) == []

    def test_parent_chain_newest_first(self, engine, repo, owner_id):
        commits = [
            _commit_files(engine, repo, owner_id, {"a.txt": str(i)}, f"commit {i}")
            for i in range(5)
        ]

        log = engine.log(repo, "main", owner_id=owner_id)

        assert [c.id for c in log] == [c.id for c in reversed(commits)]
        assert log[-1].parent_id is None
        for newer, older in zip(log, log[1:]):
            assert newer.parent_id == older.id

    def test_log_entries_carry_metadata(self, engine, repo, owner_id):
        engine.commit(repo, "main", "first", "Ada", "ada@example.com", owner_id=owner_id)

        [entry] = engine.log(repo, owner_id=owner_id)

        assert entry.message == "first"
        assert entry.author_name == "Ada"
        assert entry.author_email == "ada@example.com"
        assert entry.branch_name == "main"
        assert entry.created_at.tzinfo is not None

    def test_log_is_bounded_by_history_depth(self, engine, repo, owner_id):
        commits = [engine.commit(repo, "main", f"c{i}", owner_id=owner_id) for i in range(200)]

        log = engine.log(repo, "main", owner_id=owner_id)

        assert len(log) == 50
        assert [c.id for c in log] == [c.id for c in reversed(commits[-50:])]

    def test_depth_parameter_lowers_the_cap(self, engine, repo, owner_id):
        for i in range(10):
            engine.commit(repo, "main", f"c{i}", owner_id=owner_id)

        assert len(engine.log(repo, "main", owner_id=owner_id, depth=3)) == 3
        assert len(engine.log(repo, "main", owner_id=owner_id, depth=1000)) == 10

    def test_depth_cannot_exceed_configured_limit(self, adapter, owner_id):
        engine = SnapshotEngine(adapter, history_depth=4)
        engine.init_repository("acme", "demo", owner_id=owner_id)
        for i in range(6):
            engine.commit("demo", "main", f"c{i}", owner_id=owner_id)

        assert len(engine.log("demo", "main", owner_id=owner_id, depth=100)) == 4

    @pytest.mark.parametrize("depth", [0, -1])
    def test_invalid_depth(self, engine, repo, owner_id, depth):
        with pytest.raises(ValidationError, match="depth"):
            engine.log(repo, "main", owner_id=owner_id, depth=depth)

    def test_unknown_branch(self, engine, repo, owner_id):
        with pytest.raises(NotFoundError):
            engine.log(repo, "nope", owner_id=owner_id)

    def test_broken_chain_stops_walk(self, engine, adapter, repo, owner_id, caplog):
        k1 = engine.commit(repo, "main", "first", owner_id=owner_id)
        k2 = engine.commit(repo, "main", "second", owner_id=owner_id)
        k3 = engine.commit(repo, "main", "third", owner_id=owner_id)

        adapter.execute("PRAGMA foreign_keys = OFF")
        adapter.execute("DELETE FROM commits WHERE id = ?", (k2.id,))
        adapter.commit()

        with caplog.at_level(logging.WARNING):
            log = engine.log(repo, "main", owner_id=owner_id)

        assert [c.id for c in log] == [k3.id]
        assert f"commit {k2.id} not found" in caplog.text
        assert k1.id not in [c.id for c in log]

    def test_log_does_not_write(self, engine, adapter, repo, owner_id):
        engine.commit(repo, "main", "first", owner_id=owner_id)
        before = adapter.fetchall("SELECT * FROM branches ORDER BY id")

        engine.log(repo, "main", owner_id=owner_id)

        assert adapter.fetchall("SELECT * FROM branches ORDER BY id") == before


class TestShowCommit:
    """Tests for SnapshotEngine.show_commit."""

    def test_by_id(self, engine, repo, owner_id):
        commit = _commit_files(engine, repo, owner_id, {"b.txt": "b", "a.txt": "a"}, "first")

        detail = engine.show_commit(repo, commit.id, owner_id=owner_id)

        assert detail.commit.id == commit.id
        assert detail.commit.sha == commit.sha
        assert detail.files == ["a.txt", "b.txt"]

    def test_by_sha_prefix(self, engine, repo, owner_id):
        commit = engine.commit(repo, "main", "first", owner_id=owner_id)

        detail = engine.show_commit(repo, commit.short_sha, owner_id=owner_id)
        assert detail.commit.id == commit.id

    def test_unknown_reference(self, engine, repo, owner_id):
        engine.commit(repo, "main", "first", owner_id=owner_id)
        with pytest.raises(NotFoundError, match="Commit 'zzzzzzz' not found"):
            engine.show_commit(repo, "zzzzzzz", owner_id=owner_id)

    def test_blank_reference(self, engine, repo, owner_id):
        with pytest.raises(ValidationError):
            engine.show_commit(repo, " ", owner_id=owner_id)

    def test_commit_of_other_repository_is_not_visible(self, engine, repo, owner_id):
        engine.init_repository("acme", "other", owner_id=owner_id)
        commit = engine.commit("other", "main", "elsewhere", owner_id=owner_id)

        with pytest.raises(NotFoundError):
            engine.show_commit(repo, commit.id, owner_id=owner_id)

    def test_sha_depends_on_content(self, engine, repo, owner_id):
        k1 = _commit_files(engine, repo, owner_id, {"a.txt": "1"}, "same message")
        k2 = _commit_files(engine, repo, owner_id, {"a.txt": "2"}, "same message")
        assert k1.sha != k2.sha


class TestStatus:
    """Tests for SnapshotEngine.status."""

    def test_everything_added_before_first_commit(self, engine, repo, owner_id):
        engine.write_file(repo, "a.txt", "1", owner_id=owner_id)

        changes = engine.status(repo, owner_id=owner_id)
        assert [(c.path, c.state) for c in changes] == [("a.txt", FileState.ADDED)]

    def test_all_states(self, engine, repo, owner_id):
        _commit_files(
            engine, repo, owner_id, {"keep.txt": "k", "edit.txt": "old", "gone.txt": "g"}, "base"
        )
        engine.write_file(repo, "edit.txt", "new", owner_id=owner_id)
        engine.delete_file(repo, "gone.txt", owner_id=owner_id)
        engine.write_file(repo, "fresh.txt", "f", owner_id=owner_id)

        changes = {c.path: c.state for c in engine.status(repo, "main", owner_id=owner_id)}

        assert changes == {
            "edit.txt": FileState.MODIFIED,
            "fresh.txt": FileState.ADDED,
            "gone.txt": FileState.DELETED,
            "keep.txt": FileState.UNCHANGED,
        }

    def test_clean_after_checkout(self, engine, repo, owner_id):
        _commit_files(engine, repo, owner_id, {"a.txt": "1"}, "base")
        engine.write_file(repo, "a.txt", "dirty", owner_id=owner_id)
        engine.checkout(repo, "main", owner_id=owner_id)

        states = {c.state for c in engine.status(repo, owner_id=owner_id)}
        assert states == {FileState.UNCHANGED}
