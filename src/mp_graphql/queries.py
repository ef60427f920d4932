"""GraphQL Query root."""

import strawberry
from strawberry.types import Info

from src.mp_catalog.application.schemas import DEFAULT_PAGE_SIZE, ProductQuery
from src.mp_catalog.application.service import CatalogService
from src.mp_common.errors import UnauthenticatedError
from src.mp_common.validation import parse_input
from src.mp_gateway.auth.guards import require_authenticated
from src.mp_graphql.types import MessageType, OrderType, ProductType, UserType
from src.mp_messaging.application.service import get_messaging_service
from src.mp_order.application.service import get_order_service

_catalog = CatalogService()
_orders = get_order_service()
_messaging = get_messaging_service()


@strawberry.type
class Query:
    @strawberry.field
    async def me(self, info: Info) -> UserType | None:
        principal = require_authenticated(await info.context.principal())
        user = await info.context.loaders.users.load(principal.user_id)
        if user is None:
            raise UnauthenticatedError()
        return UserType.from_model(user)

    @strawberry.field
    async def products(
        self,
        info: Info,
        category: str | None = None,
        search: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[ProductType]:
        query = parse_input(
            ProductQuery,
            {"category": category, "search": search, "limit": limit, "offset": offset},
        )
        async with info.context.use_db() as db:
            products = await _catalog.list_products(db, query)
        return [ProductType.from_domain(p) for p in products]

    @strawberry.field
    async def product(self, info: Info, id: strawberry.ID) -> ProductType | None:
        async with info.context.use_db() as db:
            product = await _catalog.get_product(db, str(id))
        return ProductType.from_domain(product)

    @strawberry.field
    async def my_products(self, info: Info) -> list[ProductType]:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            products = await _catalog.my_products(db, principal)
        return [ProductType.from_domain(p) for p in products]

    @strawberry.field
    async def orders(self, info: Info) -> list[OrderType]:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            orders = await _orders.list_orders(db, principal)
        return [OrderType.from_domain(o) for o in orders]

    @strawberry.field
    async def order(self, info: Info, id: strawberry.ID) -> OrderType | None:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            order = await _orders.get_order(db, principal, str(id))
        return OrderType.from_domain(order)

    @strawberry.field
    async def messages(self, info: Info, user_id: strawberry.ID) -> list[MessageType]:
        principal = await info.context.principal()
        async with info.context.use_db() as db:
            messages = await _messaging.list_conversation(db, principal, str(user_id))
        return [MessageType.from_domain(m) for m in messages]
