#!/usr/bin/env python3
"""CLI for the snapshot versioning engine.

The backing store is selected by DATABASE_TYPE (see common.env). Every
command needs an owner id, given with --owner-id or VCS_OWNER_ID. The CLI
does not remember a current branch; pass --branch where it matters.
"""

import argparse
import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.markup import escape
from rich.table import Table

from common.constants import DEFAULT_BRANCH
from common.env import env
from common.logger import console, error, progress, setup_logging, success, warning
from vcs.db import DatabaseAdapter, DatabaseError, get_adapter
from vcs.engine import SnapshotEngine
from vcs.errors import ValidationError, VersioningError


@contextmanager
def open_engine() -> Iterator[SnapshotEngine]:
    """Connect, make sure the schema is current, and yield an engine."""
    adapter: DatabaseAdapter = get_adapter()
    adapter.connect()
    try:
        adapter.create_schema()
        adapter.run_migrations()
        yield SnapshotEngine(adapter)
    finally:
        adapter.close()


def cmd_init(args, engine: SnapshotEngine) -> int:
    result = engine.init_repository(args.owner, args.repo, owner_id=args.owner_id)
    if result.initialized:
        success(f"Initialized repository {result.repository.owner}/{result.repository.name}")
    else:
        warning(f"Repository {result.repository.name} is already initialized")
    return 0


def cmd_repos(args, engine: SnapshotEngine) -> int:
    repositories = engine.list_repositories(owner_id=args.owner_id)
    if not repositories:
        progress("No repositories")
        return 0

    table = Table("Name", "Owner", "Created", "Updated")
    for repository in repositories:
        table.add_row(
            repository.name,
            repository.owner,
            repository.created_at.strftime("%Y-%m-%d %H:%M"),
            repository.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)
    return 0


def cmd_write(args, engine: SnapshotEngine) -> int:
    if args.content is not None:
        content = args.content
    elif args.source is not None:
        try:
            content = Path(args.source).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(f"not UTF-8 text ({e.reason}): {args.source}") from e
    else:
        content = sys.stdin.read()

    working_file = engine.write_file(args.repo, args.path, content, owner_id=args.owner_id)
    success(f"Wrote {working_file.path}")
    return 0


def cmd_cat(args, engine: SnapshotEngine) -> int:
    working_file = engine.read_file(args.repo, args.path, owner_id=args.owner_id)
    # Raw content, no markup processing
    sys.stdout.write(working_file.content)
    return 0


def cmd_rm(args, engine: SnapshotEngine) -> int:
    if engine.delete_file(args.repo, args.path, owner_id=args.owner_id):
        success(f"Removed {escape(args.path)}")
    else:
        warning(f"{escape(args.path)} was not in the working tree")
    return 0


def cmd_ls(args, engine: SnapshotEngine) -> int:
    for path in engine.list_tree(args.repo, owner_id=args.owner_id):
        progress(escape(path))
    return 0


def cmd_commit(args, engine: SnapshotEngine) -> int:
    commit = engine.commit(
        args.repo,
        args.branch,
        args.message,
        args.author_name,
        args.author_email,
        owner_id=args.owner_id,
    )
    success(f"{args.branch} {commit.short_sha}: {escape(commit.message)}")
    return 0


def cmd_log(args, engine: SnapshotEngine) -> int:
    commits = engine.log(args.repo, args.branch, owner_id=args.owner_id, depth=args.depth)

    if args.format == "json":
        entries = [
            {
                "commitId": commit.id,
                "sha": commit.sha,
                "parent": commit.parent_id,
                "message": commit.message,
                "author": commit.author_name,
                "authorEmail": commit.author_email,
                "timestamp": commit.created_at.isoformat(),
            }
            for commit in commits
        ]
        print(json.dumps({"entries": entries}, indent=2))
        return 0

    if not commits:
        progress(f"No commits on {args.branch}")
        return 0

    table = Table("SHA", "Message", "Author", "Date")
    for commit in commits:
        table.add_row(
            commit.short_sha,
            escape(commit.message),
            f"{commit.author_name} <{commit.author_email}>",
            commit.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)
    return 0


def cmd_branch(args, engine: SnapshotEngine) -> int:
    if args.name:
        branch = engine.create_branch(
            args.repo, args.name, args.from_branch, owner_id=args.owner_id
        )
        success(f"Created branch {branch.name} from {args.from_branch}")
        return 0

    for branch in engine.list_branches(args.repo, owner_id=args.owner_id):
        head = branch.head_commit_id[:8] if branch.head_commit_id else "(no commits)"
        progress(f"{branch.name}  {head}")
    return 0


def cmd_checkout(args, engine: SnapshotEngine) -> int:
    branch = engine.checkout(args.repo, args.branch, owner_id=args.owner_id)
    success(f"Switched to branch {branch}")
    return 0


_STATE_STYLES = {
    "added": "green",
    "modified": "yellow",
    "deleted": "red",
    "unchanged": "dim",
}


def cmd_status(args, engine: SnapshotEngine) -> int:
    changes = engine.status(args.repo, args.branch, owner_id=args.owner_id)
    shown = [change for change in changes if args.all or change.state.value != "unchanged"]
    if not shown:
        progress(f"Working tree matches {args.branch}")
        return 0
    for change in shown:
        style = _STATE_STYLES[change.state.value]
        console.print(f"[{style}]{change.state.value:>9}[/{style}]  {escape(change.path)}")
    return 0


def cmd_show(args, engine: SnapshotEngine) -> int:
    detail = engine.show_commit(args.repo, args.commit, owner_id=args.owner_id)
    commit = detail.commit
    progress(f"commit {commit.sha}")
    if commit.parent_id:
        progress(f"parent {commit.parent_id}")
    progress(f"Author: {commit.author_name} <{commit.author_email}>")
    progress(f"Date:   {commit.created_at.isoformat()}")
    progress(f"\n    {escape(commit.message)}\n")
    for path in detail.files:
        progress(f"  {escape(path)}")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Snapshot version control for text files stored in a database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--owner-id",
        default=env.owner_id(),
        help="Opaque owner id scoping every repository (default: $VCS_OWNER_ID)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    init_parser = subparsers.add_parser("init", help="Create a repository with a main branch")
    init_parser.add_argument("repo", help="Repository name")
    init_parser.add_argument("--owner", help="Display name of the owner (default: owner id)")
    init_parser.set_defaults(func=cmd_init)

    repos_parser = subparsers.add_parser("repos", help="List repositories, newest first")
    repos_parser.set_defaults(func=cmd_repos)

    write_parser = subparsers.add_parser(
        "write", help="Write a working file (content from --content, --from-file or stdin)"
    )
    write_parser.add_argument("repo")
    write_parser.add_argument("path")
    source = write_parser.add_mutually_exclusive_group()
    source.add_argument("--content", "-c", help="File content")
    source.add_argument("--from-file", dest="source", help="Read content from a local file")
    write_parser.set_defaults(func=cmd_write)

    cat_parser = subparsers.add_parser("cat", help="Print a working file")
    cat_parser.add_argument("repo")
    cat_parser.add_argument("path")
    cat_parser.set_defaults(func=cmd_cat)

    rm_parser = subparsers.add_parser("rm", help="Delete a working file")
    rm_parser.add_argument("repo")
    rm_parser.add_argument("path")
    rm_parser.set_defaults(func=cmd_rm)

    ls_parser = subparsers.add_parser("ls", help="List working tree paths")
    ls_parser.add_argument("repo")
    ls_parser.set_defaults(func=cmd_ls)

    commit_parser = subparsers.add_parser("commit", help="Commit the whole working tree")
    commit_parser.add_argument("repo")
    commit_parser.add_argument("--message", "-m", help="Commit message")
    commit_parser.add_argument("--branch", "-b", default=DEFAULT_BRANCH)
    commit_parser.add_argument("--author-name")
    commit_parser.add_argument("--author-email")
    commit_parser.set_defaults(func=cmd_commit)

    log_parser = subparsers.add_parser("log", help="Show the history of a branch")
    log_parser.add_argument("repo")
    log_parser.add_argument("--branch", "-b", default=DEFAULT_BRANCH)
    log_parser.add_argument("--depth", "-n", type=int, help="Maximum number of commits")
    log_parser.add_argument(
        "--format",
        choices=["console", "json"],
        default="console",
        help="Output format (default: console)",
    )
    log_parser.set_defaults(func=cmd_log)

    branch_parser = subparsers.add_parser("branch", help="List branches or create one")
    branch_parser.add_argument("repo")
    branch_parser.add_argument("name", nargs="?", help="Name of the branch to create")
    branch_parser.add_argument("--from", dest="from_branch", default=DEFAULT_BRANCH)
    branch_parser.set_defaults(func=cmd_branch)

    checkout_parser = subparsers.add_parser(
        "checkout", help="Replace the working tree with a branch head (discards edits)"
    )
    checkout_parser.add_argument("repo")
    checkout_parser.add_argument("branch")
    checkout_parser.set_defaults(func=cmd_checkout)

    status_parser = subparsers.add_parser("status", help="Compare working tree with a branch")
    status_parser.add_argument("repo")
    status_parser.add_argument("--branch", "-b", default=DEFAULT_BRANCH)
    status_parser.add_argument("--all", action="store_true", help="Include unchanged files")
    status_parser.set_defaults(func=cmd_status)

    show_parser = subparsers.add_parser("show", help="Show a commit and its files")
    show_parser.add_argument("repo")
    show_parser.add_argument("commit", help="Commit id or sha prefix")
    show_parser.set_defaults(func=cmd_show)

    serve_parser = subparsers.add_parser("serve", help="Run the GraphQL API server")
    serve_parser.add_argument("--host", default=env.api_host())
    serve_parser.add_argument("--port", type=int, default=env.api_port())
    serve_parser.add_argument("--reload", action="store_true")
    serve_parser.set_defaults(func=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=args.log_level)

    if args.command == "serve":
        return cmd_serve(args)

    try:
        with open_engine() as engine:
            return args.func(args, engine)
    except VersioningError as e:
        error(f"{e.kind.value.lower().replace('_', ' ')}: {escape(e.message)}")
        return 1
    except DatabaseError as e:
        error(f"Database error: {escape(str(e))}")
        return 1
    except OSError as e:
        error(escape(str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
