"""Tests for row-to-record mapping."""

from datetime import datetime, timezone

import pytest

from vcs.errors import ErrorKind, MalformedRowError
from vcs.models import Branch, Commit, Repository, WorkingFile


def _commit_row(**overrides):
    row = {
        "id": "c1",
        "repository_id": "r1",
        "branch_id": "b1",
        "parent_id": None,
        "sha": "0123456789abcdef0123456789abcdef01234567",
        "message": "first",
        "author_name": "Ada",
        "author_email": "ada@example.com",
        "created_at": "2024-05-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestFromRow:
    """Tests for the from_row constructors."""

    def test_commit_from_sqlite_row(self):
        commit = Commit.from_row(_commit_row(branch_name="main"))

        assert commit.parent_id is None
        assert commit.branch_name == "main"
        assert commit.short_sha == "0123456"
        assert commit.created_at == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_accepts_datetime_values(self):
        """PostgreSQL returns timestamps as datetime objects."""
        created = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        assert Commit.from_row(_commit_row(created_at=created)).created_at == created

    def test_naive_timestamps_are_utc(self):
        commit = Commit.from_row(_commit_row(created_at="2024-05-01T12:00:00"))
        assert commit.created_at.tzinfo == timezone.utc

    def test_branch_without_head(self):
        branch = Branch.from_row(
            {
                "id": "b1",
                "repository_id": "r1",
                "name": "main",
                "head_commit_id": None,
                "created_at": "2024-05-01T12:00:00+00:00",
                "updated_at": "2024-05-01T12:00:00+00:00",
            }
        )
        assert branch.head_commit_id is None

    def test_empty_content_is_valid(self):
        working_file = WorkingFile.from_row(
            {
                "repository_id": "r1",
                "path": "empty.txt",
                "content": "",
                "updated_at": "2024-05-01T12:00:00+00:00",
            }
        )
        assert working_file.content == ""


class TestMalformedRows:
    """Rows that do not fit their record type are rejected."""

    def test_missing_column(self):
        row = _commit_row()
        del row["sha"]
        with pytest.raises(MalformedRowError, match="missing 'sha'"):
            Commit.from_row(row)

    def test_wrong_type(self):
        with pytest.raises(MalformedRowError, match="must be text"):
            Commit.from_row(_commit_row(message=42))

    def test_bad_timestamp(self):
        with pytest.raises(MalformedRowError, match="not a timestamp"):
            Commit.from_row(_commit_row(created_at="yesterday"))

    def test_is_an_internal_error(self):
        with pytest.raises(MalformedRowError) as exc_info:
            Repository.from_row({"id": "r1"})
        assert exc_info.value.kind == ErrorKind.INTERNAL
