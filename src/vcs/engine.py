"""Snapshot engine: the operations behind every versioning request.

The engine is the only component that touches more than one store in a
single operation. Each public method runs as one transaction on the adapter
it was constructed with; when any step fails the transaction is rolled back
and nothing the method wrote is visible afterwards.

Example:
    >>> with get_adapter() as adapter:
    ...     engine = SnapshotEngine(adapter)
    ...     engine.init_repository("acme", "demo", owner_id="u-1")
    ...     engine.write_file("demo", "a.txt", "hello", owner_id="u-1")
    ...     commit = engine.commit("demo", "main", "first", owner_id="u-1")
"""

import dataclasses
from collections.abc import Iterator
from contextlib import contextmanager

from common.constants import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
)
from common.env import env
from common.logger import get_logger
from vcs.branches import BranchDirectory
from vcs.db import DatabaseAdapter, DatabaseError, IntegrityError
from vcs.errors import ConflictError, InternalError, NotFoundError, ValidationError, VersioningError
from vcs.history import CommitHistory
from vcs.models import (
    Branch,
    Commit,
    CommitDetail,
    FileState,
    FileStatus,
    InitResult,
    Repository,
    WorkingFile,
    utcnow,
)
from vcs.registry import RepositoryRegistry
from vcs.snapshots import SnapshotStore, content_hash
from vcs.validation import (
    normalize_path,
    require_encodable,
    require_owner_id,
    require_text,
    validate_name,
)
from vcs.working_tree import WorkingTreeStore

logger = get_logger(__name__)

# Marker for "caller did not ask for a head check" (None is a valid head)
UNCHECKED = object()


class SnapshotEngine:
    """Commit, checkout, branch and log over a relational backing store.

    Args:
        adapter: Connected database adapter; one engine per request/session
        history_depth: Maximum number of commits a log call returns
            (defaults to HISTORY_DEPTH from the environment)
    """

    def __init__(self, adapter: DatabaseAdapter, history_depth: int | None = None):
        self.adapter = adapter
        self.repositories = RepositoryRegistry(adapter)
        self.branches = BranchDirectory(adapter)
        self.working_tree = WorkingTreeStore(adapter)
        self.snapshots = SnapshotStore(adapter)
        self.history = CommitHistory(adapter)
        self.history_depth = history_depth or env.history_depth()

    @contextmanager
    def _unit_of_work(self, operation: str, write: bool = True) -> Iterator[None]:
        """Run one engine operation as a transaction.

        Backing-store failures surface as InternalError after rollback.
        """
        try:
            with self.adapter.transaction(write=write):
                yield
        except VersioningError as e:
            logger.debug(f"{operation} rolled back: {e.kind.value} {e.message}")
            raise
        except DatabaseError as e:
            logger.error(f"{operation} rolled back: {e}")
            raise InternalError(f"{operation} failed: {e}") from e

    def _repository(self, repo_name: str, owner_id: str) -> Repository:
        return self.repositories.require(owner_id, validate_name(repo_name, "repository name"))

    # Repository registry

    def init_repository(self, owner: str | None, repo_name: str, *, owner_id: str) -> InitResult:
        """Create a repository with an empty ``main`` branch.

        Calling init for a repository that already exists is not an error;
        the result reports ``initialized=False``.
        """
        owner_id = require_owner_id(owner_id)
        repo_name = validate_name(repo_name, "repository name")
        owner = require_encodable((owner or "").strip() or owner_id, "owner")

        with self._unit_of_work("init"):
            existing = self.repositories.find(owner_id, repo_name)
            if existing is not None:
                return InitResult(repository=existing, initialized=False)
            try:
                repository = self.repositories.create(owner, repo_name, owner_id)
                self.branches.insert(repository.id, DEFAULT_BRANCH, None)
            except IntegrityError as e:
                raise ConflictError(f"Repository '{repo_name}' already exists") from e

        logger.info(f"Initialized repository {owner}/{repo_name}")
        return InitResult(repository=repository, initialized=True)

    def list_repositories(self, *, owner_id: str) -> list[Repository]:
        owner_id = require_owner_id(owner_id)
        with self._unit_of_work("list repositories", write=False):
            return self.repositories.list_by_owner(owner_id)

    # Working tree

    def write_file(
        self, repo_name: str, path: str, content: str | None, *, owner_id: str
    ) -> WorkingFile:
        owner_id = require_owner_id(owner_id)
        path = normalize_path(path)
        content = require_encodable(content or "", "content")
        with self._unit_of_work("write file"):
            repository = self._repository(repo_name, owner_id)
            working_file = self.working_tree.set(repository.id, path, content)
        logger.debug(f"Wrote {path} in {repo_name}")
        return working_file

    def read_file(self, repo_name: str, path: str, *, owner_id: str) -> WorkingFile:
        owner_id = require_owner_id(owner_id)
        path = normalize_path(path)
        with self._unit_of_work("read file", write=False):
            repository = self._repository(repo_name, owner_id)
            return self.working_tree.get(repository.id, path)

    def delete_file(self, repo_name: str, path: str, *, owner_id: str) -> bool:
        """Remove a working file. Returns False if the path did not exist."""
        owner_id = require_owner_id(owner_id)
        path = normalize_path(path)
        with self._unit_of_work("delete file"):
            repository = self._repository(repo_name, owner_id)
            return self.working_tree.delete(repository.id, path)

    def list_tree(self, repo_name: str, *, owner_id: str) -> list[str]:
        owner_id = require_owner_id(owner_id)
        with self._unit_of_work("list tree", write=False):
            repository = self._repository(repo_name, owner_id)
            return self.working_tree.paths(repository.id)

    # Snapshot operations

    def commit(
        self,
        repo_name: str,
        branch_name: str | None = None,
        message: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
        *,
        owner_id: str,
        expected_head: object = UNCHECKED,
    ) -> Commit:
        """Freeze the working tree into a new commit and advance the branch.

        Every working file gets a fresh snapshot, an empty tree gives a commit
        with no files. The branch head moves only if it still points at the
        commit read at the start; otherwise ConflictError is raised and the
        whole commit is rolled back. Pass ``expected_head`` to also require a
        particular starting head (None for a branch without commits).
        """
        owner_id = require_owner_id(owner_id)
        branch_name = validate_name(branch_name or DEFAULT_BRANCH, "branch name")
        message = require_encodable((message or "").strip() or DEFAULT_COMMIT_MESSAGE, "message")
        author_name = require_encodable(
            (author_name or "").strip() or DEFAULT_AUTHOR_NAME, "author name"
        )
        author_email = require_encodable(
            (author_email or "").strip() or DEFAULT_AUTHOR_EMAIL, "author email"
        )

        with self._unit_of_work("commit"):
            repository = self._repository(repo_name, owner_id)
            branch = self.branches.require(repository.id, branch_name)
            parent_id = branch.head_commit_id

            if expected_head is not UNCHECKED and expected_head != parent_id:
                raise ConflictError(
                    f"Branch '{branch_name}' is at {parent_id or 'no commit'}, "
                    f"expected {expected_head or 'no commit'}"
                )

            snapshots = [
                self.snapshots.create(repository.id, working_file.path, working_file.content)
                for working_file in self.working_tree.files(repository.id)
            ]
            commit = self.history.create(
                repository_id=repository.id,
                branch_id=branch.id,
                parent_id=parent_id,
                message=message,
                author_name=author_name,
                author_email=author_email,
                created_at=utcnow(),
                snapshots=snapshots,
            )
            self.snapshots.link(commit.id, snapshots)

            if not self.branches.advance_head(branch.id, parent_id, commit.id):
                raise ConflictError(
                    f"Branch '{branch_name}' was updated by another commit; retry the commit"
                )
            self.repositories.touch(repository.id)

        logger.info(
            f"Committed {commit.short_sha} on {repo_name}/{branch_name} "
            f"({len(snapshots)} file(s))"
        )
        return dataclasses.replace(commit, branch_name=branch.name)

    def checkout(self, repo_name: str, branch_name: str, *, owner_id: str) -> str:
        """Replace the working tree with the head snapshot of a branch.

        Uncommitted working-tree changes are discarded. A branch without
        commits leaves an empty working tree.

        Returns:
            The name of the branch checked out
        """
        owner_id = require_owner_id(owner_id)
        branch_name = validate_name(branch_name, "branch name")

        with self._unit_of_work("checkout"):
            repository = self._repository(repo_name, owner_id)
            branch = self.branches.require(repository.id, branch_name)

            removed = self.working_tree.wipe(repository.id)
            restored = 0
            if branch.head_commit_id is not None:
                for snapshot in self.snapshots.for_commit(branch.head_commit_id):
                    self.working_tree.set(repository.id, snapshot.path, snapshot.content)
                    restored += 1

        logger.info(
            f"Checked out {repo_name}/{branch_name}: removed {removed}, restored {restored} file(s)"
        )
        return branch.name

    # Branches

    def create_branch(
        self,
        repo_name: str,
        name: str,
        from_branch: str | None = None,
        *,
        owner_id: str,
    ) -> Branch:
        """Create ``name`` pointing at the current head of ``from_branch`` (default main)."""
        owner_id = require_owner_id(owner_id)
        name = validate_name(name, "branch name")
        from_branch = validate_name(from_branch or DEFAULT_BRANCH, "source branch name")

        with self._unit_of_work("create branch"):
            repository = self._repository(repo_name, owner_id)
            if self.branches.find(repository.id, name) is not None:
                raise ConflictError(f"Branch '{name}' already exists")

            source = self.branches.find(repository.id, from_branch)
            if source is None:
                raise NotFoundError(f"Source branch '{from_branch}' not found")

            try:
                branch = self.branches.insert(repository.id, name, source.head_commit_id)
            except IntegrityError as e:
                raise ConflictError(f"Branch '{name}' already exists") from e

        logger.info(f"Created branch {repo_name}/{name} from {from_branch}")
        return branch

    def list_branches(self, repo_name: str, *, owner_id: str) -> list[Branch]:
        owner_id = require_owner_id(owner_id)
        with self._unit_of_work("list branches", write=False):
            repository = self._repository(repo_name, owner_id)
            return self.branches.list_by_repository(repository.id)

    # History

    def log(
        self,
        repo_name: str,
        branch_name: str | None = None,
        *,
        owner_id: str,
        depth: int | None = None,
    ) -> list[Commit]:
        """Commits reachable from the branch head, newest first.

        At most ``history_depth`` commits are returned; a smaller ``depth``
        lowers the cap for this call.
        """
        owner_id = require_owner_id(owner_id)
        branch_name = validate_name(branch_name or DEFAULT_BRANCH, "branch name")
        if depth is not None and depth < 1:
            raise ValidationError("depth must be a positive integer")
        limit = min(depth, self.history_depth) if depth else self.history_depth

        with self._unit_of_work("log", write=False):
            repository = self._repository(repo_name, owner_id)
            branch = self.branches.require(repository.id, branch_name)
            return self.history.walk(repository.id, branch.head_commit_id, limit)

    def show_commit(self, repo_name: str, reference: str, *, owner_id: str) -> CommitDetail:
        """A commit (by id or sha prefix) and the paths in its snapshot set."""
        owner_id = require_owner_id(owner_id)
        reference = require_text(reference, "commit id")

        with self._unit_of_work("show commit", write=False):
            repository = self._repository(repo_name, owner_id)
            commit = self.history.resolve(repository.id, reference)
            if commit is None:
                raise NotFoundError(f"Commit '{reference}' not found")
            files = [snapshot.path for snapshot in self.snapshots.for_commit(commit.id)]
        return CommitDetail(commit=commit, files=files)

    def status(
        self, repo_name: str, branch_name: str | None = None, *, owner_id: str
    ) -> list[FileStatus]:
        """Compare the working tree with the head snapshot of a branch."""
        owner_id = require_owner_id(owner_id)
        branch_name = validate_name(branch_name or DEFAULT_BRANCH, "branch name")

        with self._unit_of_work("status", write=False):
            repository = self._repository(repo_name, owner_id)
            branch = self.branches.require(repository.id, branch_name)
            committed = {}
            if branch.head_commit_id is not None:
                committed = {
                    snapshot.path: snapshot.content_hash
                    for snapshot in self.snapshots.for_commit(branch.head_commit_id)
                }
            working = {
                working_file.path: content_hash(working_file.content)
                for working_file in self.working_tree.files(repository.id)
            }

        changes = []
        for path in sorted(committed.keys() | working.keys()):
            if path not in committed:
                state = FileState.ADDED
            elif path not in working:
                state = FileState.DELETED
            elif committed[path] != working[path]:
                state = FileState.MODIFIED
            else:
                state = FileState.UNCHANGED
            changes.append(FileStatus(path=path, state=state))
        return changes
