"""FastAPI application with the GraphQL endpoint for the versioning engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from api.context import get_context
from api.schema import schema
from common.constants import API_TITLE, API_VERSION
from common.env import env
from common.logger import get_logger
from vcs.db import DatabaseType, get_adapter

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema and apply pending migrations before serving."""
    with get_adapter() as adapter:
        adapter.create_schema()
        applied = adapter.run_migrations()
    logger.info(f"Backing store ready ({env.database_type()}, {applied} migration(s) applied)")
    yield
    if env.database_type().lower() == DatabaseType.POSTGRESQL.value:
        from vcs.db.postgres_adapter import close_pools

        close_pools()


app = FastAPI(
    title=API_TITLE,
    description="GraphQL API for snapshot version control of text files",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=env.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

graphql_app = GraphQLRouter(schema, context_getter=get_context)
app.include_router(graphql_app, prefix="/graphql")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "graphql_endpoint": "/graphql",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
