"""GraphQL resolvers for repositories, working trees, branches and history."""

import strawberry
from strawberry.types import Info

from api.context import engine_from, graphql_errors
from api.types import (
    Branch,
    CheckoutResult,
    CommitDetail,
    CommitResult,
    DeleteResult,
    FileChange,
    FileContent,
    FileState,
    InitResult,
    LogEntry,
    Repository,
    TreeEntry,
    WriteResult,
)
from common.constants import DEFAULT_BRANCH


@strawberry.type
class Query:
    """Read-only operations. None of them modify the store."""

    @strawberry.field
    def repositories(self, info: Info, owner_id: str) -> list[Repository]:
        """Repositories of an owner, newest first."""
        with graphql_errors():
            repositories = engine_from(info).list_repositories(owner_id=owner_id)
        return [Repository.from_model(repository) for repository in repositories]

    @strawberry.field
    def tree(self, info: Info, repo: str, owner_id: str) -> list[TreeEntry]:
        """Paths currently in the working tree."""
        with graphql_errors():
            paths = engine_from(info).list_tree(repo, owner_id=owner_id)
        return [TreeEntry(path=path) for path in paths]

    @strawberry.field
    def read_file(self, info: Info, repo: str, path: str, owner_id: str) -> FileContent:
        with graphql_errors():
            working_file = engine_from(info).read_file(repo, path, owner_id=owner_id)
        return FileContent(
            path=working_file.path,
            content=working_file.content,
            updated_at=working_file.updated_at,
        )

    @strawberry.field
    def branches(self, info: Info, repo: str, owner_id: str) -> list[Branch]:
        with graphql_errors():
            branches = engine_from(info).list_branches(repo, owner_id=owner_id)
        return [Branch(name=branch.name, head=branch.head_commit_id) for branch in branches]

    @strawberry.field
    def log(
        self,
        info: Info,
        repo: str,
        owner_id: str,
        branch: str = DEFAULT_BRANCH,
        depth: int | None = None,
    ) -> list[LogEntry]:
        """Commits reachable from the branch head, newest first."""
        with graphql_errors():
            commits = engine_from(info).log(repo, branch, owner_id=owner_id, depth=depth)
        return [LogEntry.from_model(commit) for commit in commits]

    @strawberry.field
    def status(
        self, info: Info, repo: str, owner_id: str, branch: str = DEFAULT_BRANCH
    ) -> list[FileChange]:
        """Working tree compared with the branch head snapshot."""
        with graphql_errors():
            changes = engine_from(info).status(repo, branch, owner_id=owner_id)
        return [
            FileChange(path=change.path, state=FileState(change.state.value))
            for change in changes
        ]

    @strawberry.field
    def commit(self, info: Info, repo: str, commit_id: str, owner_id: str) -> CommitDetail:
        """A single commit and the files captured in it."""
        with graphql_errors():
            detail = engine_from(info).show_commit(repo, commit_id, owner_id=owner_id)
        return CommitDetail(entry=LogEntry.from_model(detail.commit), files=detail.files)


@strawberry.type
class Mutation:
    """Operations that change the working tree, branches or history."""

    @strawberry.mutation
    def init_repository(
        self, info: Info, repo_name: str, owner_id: str, owner: str | None = None
    ) -> InitResult:
        with graphql_errors():
            result = engine_from(info).init_repository(owner, repo_name, owner_id=owner_id)
        return InitResult(
            initialized=result.initialized,
            repository=Repository.from_model(result.repository),
        )

    @strawberry.mutation
    def write_file(
        self, info: Info, repo: str, path: str, owner_id: str, content: str = ""
    ) -> WriteResult:
        with graphql_errors():
            working_file = engine_from(info).write_file(repo, path, content, owner_id=owner_id)
        return WriteResult(path=working_file.path)

    @strawberry.mutation
    def delete_file(self, info: Info, repo: str, path: str, owner_id: str) -> DeleteResult:
        with graphql_errors():
            existed = engine_from(info).delete_file(repo, path, owner_id=owner_id)
        return DeleteResult(ok=True, existed=existed)

    @strawberry.mutation
    def commit(
        self,
        info: Info,
        repo: str,
        owner_id: str,
        branch: str = DEFAULT_BRANCH,
        message: str | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
    ) -> CommitResult:
        """Snapshot the whole working tree onto a branch."""
        with graphql_errors():
            commit = engine_from(info).commit(
                repo, branch, message, author_name, author_email, owner_id=owner_id
            )
        return CommitResult(commit_id=commit.id, sha=commit.sha)

    @strawberry.mutation
    def checkout(self, info: Info, repo: str, branch: str, owner_id: str) -> CheckoutResult:
        """Replace the working tree with the branch head. Uncommitted edits are lost."""
        with graphql_errors():
            name = engine_from(info).checkout(repo, branch, owner_id=owner_id)
        return CheckoutResult(branch=name)

    @strawberry.mutation
    def create_branch(
        self,
        info: Info,
        repo: str,
        name: str,
        owner_id: str,
        from_branch: str = DEFAULT_BRANCH,
    ) -> Branch:
        with graphql_errors():
            branch = engine_from(info).create_branch(
                repo, name, from_branch, owner_id=owner_id
            )
        return Branch(name=branch.name, head=branch.head_commit_id)
