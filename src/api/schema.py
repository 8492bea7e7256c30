"""GraphQL schema combining all types and resolvers."""

import strawberry

from api.resolvers.repository import Mutation, Query

schema = strawberry.Schema(query=Query, mutation=Mutation)
