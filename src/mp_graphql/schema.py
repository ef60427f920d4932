"""Strawberry schema and the FastAPI router that serves it at /graphql."""

from graphql import GraphQLError
from strawberry import Schema
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL
from strawberry.types import ExecutionContext

from src.mp_graphql.context import get_context
from src.mp_graphql.errors import AppErrorExtension, log_error
from src.mp_graphql.mutations import Mutation
from src.mp_graphql.queries import Query
from src.mp_graphql.subscriptions import Subscription


class MarketplaceSchema(Schema):
    def process_errors(
        self,
        errors: list[GraphQLError],
        execution_context: ExecutionContext | None = None,
    ) -> None:
        for error in errors:
            log_error(error)


schema = MarketplaceSchema(
    query=Query,
    mutation=Mutation,
    subscription=Subscription,
    extensions=[AppErrorExtension],
)

graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    subscription_protocols=[GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL],
)
