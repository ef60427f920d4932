"""Unit tests for MessagingService, including delivery on both channels."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.mp_common.enums import FanoutTopic, OrderStatus, Role
from src.mp_common.errors import (
    ForbiddenError,
    OrderNotFoundError,
    UnauthenticatedError,
    UserNotFoundError,
)
from src.mp_common.locks import KeyedLocks
from src.mp_messaging.application.fanout import MessageFanout
from src.mp_messaging.application.schemas import MessageEvent, MessageInput
from src.mp_messaging.application.service import MessagingService
from src.mp_messaging.infrastructure.pubsub import PubSubSink
from src.mp_order.domain.models import Order
from src.mp_realtime.sink import SocketRoomSink
from tests.unit.fakes import (
    FakeMessageRepository,
    FakeOrderRepository,
    FakeUsers,
    RecordingSink,
    make_user,
    new_id,
    principal_for,
)

ALICE = make_user(Role.BUYER, "Alice")
BOB = make_user(Role.SELLER, "Bob")
CAROL = make_user(Role.BUYER, "Carol")


class InMemoryBus:
    """Topic bus with one queue per (topic, key) subscription."""

    def __init__(self) -> None:
        self.queues: dict[tuple[FanoutTopic, str], asyncio.Queue[str]] = {}

    def subscribe(self, topic: FanoutTopic, key: str) -> "asyncio.Queue[str]":
        return self.queues.setdefault((topic, key), asyncio.Queue())

    async def publish(self, topic: FanoutTopic, key: str, payload: str) -> int:
        queue = self.queues.get((topic, key))
        if queue is None:
            return 0
        await queue.put(payload)
        return 1


@pytest.fixture
def repo() -> FakeMessageRepository:
    return FakeMessageRepository()


@pytest.fixture
def orders() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def service(
    repo: FakeMessageRepository,
    orders: FakeOrderRepository,
    sink: RecordingSink,
    locks: KeyedLocks,
) -> MessagingService:
    fanout = MessageFanout()
    fanout.register_sink(sink)
    return MessagingService(
        repo=repo,
        users=FakeUsers(ALICE, BOB, CAROL),  # type: ignore[arg-type]
        orders=orders,
        fanout=fanout,
        locks=locks,
    )


def _order_between(buyer: object, seller: object) -> Order:
    return Order(
        id=new_id(),
        buyer_id=str(buyer.id),  # type: ignore[attr-defined]
        seller_id=str(seller.id),  # type: ignore[attr-defined]
        product_id=new_id(),
        quantity=1,
        unit_price_cents=500,
        total_amount_cents=500,
        status=OrderStatus.PAID,
    )


class TestSendMessage:
    async def test_persists_and_publishes_to_receiver(
        self, service: MessagingService, repo: FakeMessageRepository, sink: RecordingSink
    ) -> None:
        db = AsyncMock()
        message, event = await service.send_message(
            db, principal_for(ALICE), MessageInput(receiver_id=str(BOB.id), content="Hi Bob")
        )

        assert repo.messages == [message]
        assert message.sender_id == str(ALICE.id)
        db.commit.assert_awaited_once()
        [published] = sink.events
        assert published.topic == FanoutTopic.MESSAGE_ADDED
        assert published.key == str(BOB.id)
        assert published.payload["senderId"] == str(ALICE.id)
        assert published.payload["sender"]["firstName"] == "Alice"
        assert event.receiver is not None and event.receiver.id == str(BOB.id)

    async def test_receiver_locks_released(
        self, service: MessagingService, locks: KeyedLocks
    ) -> None:
        for receiver in (BOB, CAROL, BOB):
            await service.send_message(
                AsyncMock(),
                principal_for(ALICE),
                MessageInput(receiver_id=str(receiver.id), content="ping"),
            )
        assert len(locks) == 0

    async def test_requires_authentication(self, service: MessagingService) -> None:
        with pytest.raises(UnauthenticatedError):
            await service.send_message(
                AsyncMock(), None, MessageInput(receiver_id=str(BOB.id), content="hi")
            )

    async def test_unknown_receiver(
        self, service: MessagingService, sink: RecordingSink
    ) -> None:
        with pytest.raises(UserNotFoundError):
            await service.send_message(
                AsyncMock(), principal_for(ALICE), MessageInput(receiver_id=new_id(), content="hi")
            )
        assert sink.events == []

    async def test_referenced_order_must_exist(self, service: MessagingService) -> None:
        with pytest.raises(OrderNotFoundError):
            await service.send_message(
                AsyncMock(),
                principal_for(ALICE),
                MessageInput(receiver_id=str(BOB.id), content="hi", order_id=new_id()),
            )

    async def test_referenced_order_must_be_senders(
        self, service: MessagingService, orders: FakeOrderRepository
    ) -> None:
        order = orders.add(_order_between(ALICE, BOB))
        with pytest.raises(ForbiddenError):
            await service.send_message(
                AsyncMock(),
                principal_for(CAROL),
                MessageInput(receiver_id=str(BOB.id), content="hi", order_id=order.id),
            )

        message, _ = await service.send_message(
            AsyncMock(),
            principal_for(ALICE),
            MessageInput(receiver_id=str(BOB.id), content="About my order", order_id=order.id),
        )
        assert message.order_id == order.id

    async def test_store_failure_publishes_nothing(
        self, service: MessagingService, sink: RecordingSink
    ) -> None:
        db = AsyncMock()
        db.commit.side_effect = RuntimeError("db down")
        with pytest.raises(RuntimeError):
            await service.send_message(
                db, principal_for(ALICE), MessageInput(receiver_id=str(BOB.id), content="hi")
            )
        db.rollback.assert_awaited_once()
        assert sink.events == []

    async def test_receiver_sees_messages_in_commit_order(
        self, service: MessagingService, sink: RecordingSink
    ) -> None:
        await asyncio.gather(
            *(
                service.send_message(
                    AsyncMock(),
                    principal_for(ALICE),
                    MessageInput(receiver_id=str(BOB.id), content=f"msg {i}"),
                )
                for i in range(5)
            )
        )
        created = [e.payload["createdAt"] for e in sink.events]
        assert created == sorted(created)


class TestListConversation:
    async def test_both_directions_oldest_first(self, service: MessagingService) -> None:
        db = AsyncMock()
        await service.send_message(
            db, principal_for(ALICE), MessageInput(receiver_id=str(BOB.id), content="one")
        )
        await service.send_message(
            db, principal_for(BOB), MessageInput(receiver_id=str(ALICE.id), content="two")
        )
        await service.send_message(
            db, principal_for(CAROL), MessageInput(receiver_id=str(BOB.id), content="other")
        )

        conversation = await service.list_conversation(db, principal_for(ALICE), str(BOB.id))
        assert [m.content for m in conversation] == ["one", "two"]

    async def test_malformed_other_id(self, service: MessagingService) -> None:
        assert await service.list_conversation(AsyncMock(), principal_for(ALICE), "x") == []


class TestCrossChannelDelivery:
    async def test_one_send_reaches_subscription_and_socket_room(self) -> None:
        bus = InMemoryBus()
        subscription = bus.subscribe(FanoutTopic.MESSAGE_ADDED, str(BOB.id))
        sio = AsyncMock()
        fanout = MessageFanout()
        fanout.register_sink(PubSubSink(bus))  # type: ignore[arg-type]
        fanout.register_sink(SocketRoomSink(sio))
        service = MessagingService(
            repo=FakeMessageRepository(),
            users=FakeUsers(ALICE, BOB),  # type: ignore[arg-type]
            orders=FakeOrderRepository(),
            fanout=fanout,
        )

        message, _ = await service.send_message(
            AsyncMock(), principal_for(ALICE), MessageInput(receiver_id=str(BOB.id), content="hey")
        )

        received = MessageEvent.model_validate_json(subscription.get_nowait())
        assert received.to_domain() == message
        event_name, payload = sio.emit.await_args.args
        assert event_name == "new_message"
        assert sio.emit.await_args.kwargs == {"room": str(BOB.id)}
        assert payload["id"] == message.id
        assert payload["content"] == "hey"
