"""Per-request engine and GraphQL context.

Each request opens its own adapter and engine and closes it afterwards;
there is no process-wide connection.
"""

from collections.abc import AsyncIterator
from contextlib import contextmanager

from fastapi import Depends
from graphql import GraphQLError
from strawberry.types import Info

from vcs.db import get_adapter
from vcs.engine import SnapshotEngine
from vcs.errors import VersioningError


async def get_engine() -> AsyncIterator[SnapshotEngine]:
    adapter = get_adapter()
    adapter.connect()
    try:
        yield SnapshotEngine(adapter)
    finally:
        adapter.close()


async def get_context(engine: SnapshotEngine = Depends(get_engine)) -> dict:
    return {"engine": engine}


def engine_from(info: Info) -> SnapshotEngine:
    return info.context["engine"]


@contextmanager
def graphql_errors():
    """Report engine errors as GraphQL errors tagged with their kind."""
    try:
        yield
    except VersioningError as e:
        raise GraphQLError(e.message, extensions={"code": e.kind.value}) from e
