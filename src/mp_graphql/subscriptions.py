"""GraphQL Subscription root, fed by the Redis topic bus.

Authorization happens once, when the subscription starts; afterwards every
event on the topic is pushed. The topic key already scopes delivery to one
receiver / one order, so no per-event filtering is needed.
"""

import logging
from collections.abc import AsyncGenerator

import strawberry
from strawberry.types import Info

from src.mp_common.enums import FanoutTopic
from src.mp_common.errors import ForbiddenError
from src.mp_common.ids import normalize_id
from src.mp_gateway.auth.guards import require_authenticated, same_user
from src.mp_graphql.context import GraphQLContext
from src.mp_graphql.types import MessageType, OrderType
from src.mp_messaging.application.schemas import MessageEvent
from src.mp_messaging.infrastructure.pubsub import RedisPubSub
from src.mp_order.application.schemas import OrderEvent
from src.mp_order.application.service import get_order_service

logger = logging.getLogger(__name__)

_bus = RedisPubSub()
_orders = get_order_service()


async def message_stream(
    context: GraphQLContext, user_id: str
) -> AsyncGenerator[MessageType, None]:
    principal = require_authenticated(await context.principal())
    key = normalize_id(user_id) or str(user_id)
    if not principal.is_admin and not same_user(principal.user_id, key):
        raise ForbiddenError("You can only subscribe to your own messages")

    logger.debug("User %s subscribed to messages for %s", principal.user_id, key)
    async for raw in _bus.subscribe(FanoutTopic.MESSAGE_ADDED, key):
        event = MessageEvent.model_validate_json(raw)
        yield MessageType.from_domain(event.to_domain())


async def order_stream(
    context: GraphQLContext, order_id: str
) -> AsyncGenerator[OrderType, None]:
    principal = await context.principal()
    async with context.use_db() as db:
        order = await _orders.get_order(db, principal, str(order_id))
        # Release the connection; the stream may stay open for hours
        await db.rollback()

    async for raw in _bus.subscribe(FanoutTopic.ORDER_UPDATED, order.id):
        event = OrderEvent.model_validate_json(raw)
        yield OrderType.from_domain(event.to_domain())


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def message_added(
        self, info: Info, user_id: strawberry.ID
    ) -> AsyncGenerator[MessageType, None]:
        async for message in message_stream(info.context, str(user_id)):
            yield message

    @strawberry.subscription
    async def order_status_updated(
        self, info: Info, order_id: strawberry.ID
    ) -> AsyncGenerator[OrderType, None]:
        async for order in order_stream(info.context, str(order_id)):
            yield order
