"""MessagingService — the single sendMessage implementation.

GraphQL `sendMessage` and the socket `send_message` event both land here.
Persist and fanout run inside one per-receiver critical section, so a
persisted message always has a delivery attempt and a receiver observes its
messages in commit order on both channels.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import FanoutTopic
from src.mp_common.errors import ForbiddenError, OrderNotFoundError, UserNotFoundError
from src.mp_common.ids import normalize_id
from src.mp_common.locks import KeyedLocks
from src.mp_gateway.auth.guards import is_order_party, require_authenticated
from src.mp_gateway.auth.principal import Principal
from src.mp_gateway.user.schemas import UserSummary
from src.mp_gateway.user.service import UserService
from src.mp_messaging.application.fanout import MessageFanout, get_fanout
from src.mp_messaging.application.schemas import MessageEvent, MessageInput
from src.mp_messaging.domain.models import FanoutEvent, Message
from src.mp_messaging.domain.repository import MessageRepositoryProtocol
from src.mp_messaging.infrastructure.persistence import MessageRepository
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class MessagingService:
    def __init__(
        self,
        repo: MessageRepositoryProtocol | None = None,
        users: UserService | None = None,
        orders: OrderRepositoryProtocol | None = None,
        fanout: MessageFanout | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._repo: MessageRepositoryProtocol = repo or MessageRepository()
        self._users = users or UserService()
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._fanout = fanout or get_fanout()
        self._locks = locks or KeyedLocks()

    async def send_message(
        self, db: AsyncSession, principal: Principal | None, req: MessageInput
    ) -> tuple[Message, MessageEvent]:
        """Persist a message and fan it out. Returns (message, delivered payload)."""
        sender = require_authenticated(principal)

        receiver = await self._users.get_by_id(req.receiver_id, db)
        if receiver is None:
            raise UserNotFoundError(req.receiver_id)
        if req.order_id is not None:
            order = await self._orders.get_by_id(db, req.order_id)
            if order is None:
                raise OrderNotFoundError(req.order_id)
            if not is_order_party(order, sender) and not sender.is_admin:
                raise ForbiddenError("You can only reference your own orders")
        sender_user = await self._users.get_by_id(sender.user_id, db)

        draft = Message(
            id="",
            sender_id=sender.user_id,
            receiver_id=str(receiver.id),
            content=req.content,
            order_id=req.order_id,
        )
        async with self._locks.hold(draft.receiver_id):
            try:
                message = await self._repo.save(db, draft)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

            event = MessageEvent.from_domain(
                message,
                sender=UserSummary.from_model(sender_user) if sender_user else None,
                receiver=UserSummary.from_model(receiver),
            )
            await self._fanout.publish(
                FanoutEvent(
                    topic=FanoutTopic.MESSAGE_ADDED,
                    key=message.receiver_id,
                    payload=event.model_dump(mode="json", by_alias=True),
                )
            )
        logger.info("Message %s sent %s -> %s", message.id, message.sender_id, message.receiver_id)
        return message, event

    async def list_conversation(
        self, db: AsyncSession, principal: Principal | None, other_user_id: str
    ) -> list[Message]:
        me = require_authenticated(principal)
        other = normalize_id(other_user_id)
        if other is None:
            return []
        return await self._repo.list_conversation(db, me.user_id, other)


_service: MessagingService | None = None


def get_messaging_service() -> MessagingService:
    """Process-wide instance, so every surface shares the per-receiver locks."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = MessagingService()
    return _service
