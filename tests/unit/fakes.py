"""In-memory stand-ins for the repositories, user lookups and payment gateway.

They follow the same contracts as the SQL implementations: conditional stock
decrement keyed by order id, compare-and-swap order status, insert-only
messages.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator, Sequence
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from src.mp_catalog.domain.models import Product
from src.mp_common.enums import FanoutTopic, OrderStatus, Role
from src.mp_common.errors import InsufficientStockError
from src.mp_common.ids import normalize_id
from src.mp_gateway.auth.principal import Principal
from src.mp_gateway.user.db_models import UserModel
from src.mp_messaging.domain.models import FanoutEvent, Message
from src.mp_order.domain.models import Order
from src.mp_payment.domain.gateway import (
    PaymentApproval,
    PaymentConfirmation,
    PaymentGatewayError,
    PaymentRequest,
)

_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


def new_id() -> str:
    return str(uuid.uuid4())


def make_user(role: Role = Role.BUYER, first_name: str = "Alice") -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.email = f"{first_name.lower()}-{user.id.hex[:6]}@example.com"
    user.password_hash = "$2b$12$fakehash"
    user.first_name = first_name
    user.last_name = "Tester"
    user.avatar = None
    user.role = role.value
    user.is_verified = False
    user.created_at = _EPOCH
    user.updated_at = _EPOCH
    return user


def principal_for(user: UserModel) -> Principal:
    return Principal.from_user(user)


class FakeUsers:
    """Replaces UserService for the lookups the services make."""

    def __init__(self, *users: UserModel) -> None:
        self.by_id = {str(u.id): u for u in users}

    def add(self, user: UserModel) -> UserModel:
        self.by_id[str(user.id)] = user
        return user

    async def get_by_id(self, user_id: str, db: object) -> UserModel | None:
        return self.by_id.get(normalize_id(user_id) or "")

    async def get_many(self, user_ids: Sequence[str], db: object) -> dict[str, UserModel]:
        return {k: self.by_id[k] for k in (normalize_id(i) for i in user_ids) if k in self.by_id}


class FakeProductRepository:
    def __init__(self) -> None:
        self.products: dict[str, Product] = {}
        self.movements: dict[str, int] = {}

    def add(self, seller_id: str, price_cents: int = 1000, stock: int = 5, **kw: object) -> Product:
        product = Product(
            id=new_id(),
            seller_id=seller_id,
            title=str(kw.get("title", "Vintage lamp")),
            description=str(kw.get("description", "Gently used, in good condition")),
            price_cents=price_cents,
            category=str(kw.get("category", "home")),
            stock=stock,
            is_active=bool(kw.get("is_active", True)),
            created_at=_EPOCH + timedelta(seconds=len(self.products)),
        )
        self.products[product.id] = product
        return product

    async def create(self, db: object, product: Product) -> Product:
        stored = replace(product, id=new_id(), created_at=_EPOCH, updated_at=_EPOCH)
        self.products[stored.id] = stored
        return replace(stored)

    async def get_by_id(self, db: object, product_id: str) -> Product | None:
        product = self.products.get(normalize_id(product_id) or "")
        return replace(product) if product else None

    async def get_many(self, db: object, product_ids: Sequence[str]) -> dict[str, Product]:
        return {
            pid: replace(self.products[pid])
            for pid in (normalize_id(p) for p in product_ids)
            if pid in self.products
        }

    async def list_active(
        self, db: object, category: str | None, search: str | None, limit: int, offset: int
    ) -> list[Product]:
        rows = [p for p in self.products.values() if p.is_active]
        if category:
            rows = [p for p in rows if category.lower() in p.category.lower()]
        if search:
            rows = [p for p in rows if search.lower() in (p.title + " " + p.description).lower()]
        rows.sort(key=lambda p: p.created_at or _EPOCH, reverse=True)
        return [replace(p) for p in rows[offset : offset + limit]]

    async def list_by_seller(self, db: object, seller_id: str) -> list[Product]:
        return [replace(p) for p in self.products.values() if p.seller_id == seller_id]

    async def update(self, db: object, product: Product) -> Product | None:
        current = self.products.get(product.id)
        if current is None or not current.is_active:
            return None
        updated = replace(product, seller_id=current.seller_id, updated_at=_EPOCH)
        self.products[product.id] = updated
        return replace(updated)

    async def deactivate(self, db: object, product_id: str) -> bool:
        current = self.products.get(product_id)
        if current is None or not current.is_active:
            return False
        current.is_active = False
        return True

    async def decrement_stock_for_order(
        self, db: object, product_id: str, order_id: str, quantity: int
    ) -> bool:
        if order_id in self.movements:
            return False
        product = self.products[product_id]
        if product.stock < quantity:
            raise InsufficientStockError(quantity, product.stock)
        product.stock -= quantity
        self.movements[order_id] = quantity
        return True


class FakeOrderRepository:
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}

    def add(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    async def save(self, db: object, order: Order) -> Order:
        stored = replace(order, id=new_id(), created_at=_EPOCH, updated_at=_EPOCH)
        self.orders[stored.id] = stored
        return replace(stored)

    async def get_by_id(self, db: object, order_id: str) -> Order | None:
        order = self.orders.get(normalize_id(order_id) or "")
        return replace(order) if order else None

    async def get_many(self, db: object, order_ids: Sequence[str]) -> dict[str, Order]:
        return {
            oid: replace(self.orders[oid])
            for oid in (normalize_id(o) for o in order_ids)
            if oid in self.orders
        }

    async def list_for_party(self, db: object, user_id: str) -> list[Order]:
        return [
            replace(o) for o in self.orders.values() if user_id in (o.buyer_id, o.seller_id)
        ]

    async def attach_payment(self, db: object, order_id: str, payment_id: str) -> Order | None:
        current = self.orders.get(order_id)
        if current is None or current.status != OrderStatus.PENDING:
            return None
        current.payment_id = payment_id
        return replace(current)

    async def compare_and_set_status(
        self,
        db: object,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        payment_id: str | None = None,
    ) -> Order | None:
        current = self.orders.get(order_id)
        if current is None or current.status != expected:
            return None
        current.status = target
        if payment_id is not None:
            current.payment_id = payment_id
        return replace(current)


class FakeMessageRepository:
    def __init__(self) -> None:
        self.messages: list[Message] = []

    async def save(self, db: object, message: Message) -> Message:
        stored = replace(
            message,
            id=new_id(),
            created_at=_EPOCH + timedelta(seconds=len(self.messages)),
        )
        self.messages.append(stored)
        return stored

    async def list_conversation(self, db: object, user_a: str, user_b: str) -> list[Message]:
        pair = {user_a, user_b}
        return [m for m in self.messages if {m.sender_id, m.receiver_id} == pair]


class FakeGateway:
    def __init__(self, fail_create: bool = False, fail_execute: bool = False) -> None:
        self.fail_create = fail_create
        self.fail_execute = fail_execute
        self.created: list[PaymentRequest] = []
        self.executed: list[tuple[str, str]] = []
        # Confirm a different payment id than the one executed
        self.confirm_as: str | None = None
        # When set, execute_payment waits on it after signalling `waiting`
        self.release: asyncio.Event | None = None
        self.waiting = asyncio.Event()

    async def create_payment(self, request: PaymentRequest) -> PaymentApproval:
        if self.fail_create:
            raise PaymentGatewayError("create refused")
        self.created.append(request)
        payment_id = f"PAYID-{len(self.created)}"
        return PaymentApproval(
            payment_id=payment_id,
            approval_url=f"https://paypal.test/approve?token={payment_id}",
        )

    async def execute_payment(self, payment_id: str, payer_id: str) -> PaymentConfirmation:
        if self.fail_execute:
            raise PaymentGatewayError("execute refused")
        if self.release is not None:
            self.waiting.set()
            await self.release.wait()
        self.executed.append((payment_id, payer_id))
        return PaymentConfirmation(payment_id=self.confirm_as or payment_id, state="approved")


class RecordingSink:
    def __init__(self, name: str = "recording", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.events: list[FanoutEvent] = []

    async def deliver(self, event: FanoutEvent) -> None:
        if self.fail:
            raise RuntimeError(f"{self.name} is down")
        self.events.append(event)


class QueueBus:
    """Topic bus with the RedisPubSub interface, one queue per (topic, key).

    Publishing before anyone subscribed still buffers the payload, so tests
    don't have to race the subscriber.
    """

    def __init__(self) -> None:
        self.queues: dict[tuple[FanoutTopic, str], asyncio.Queue[str]] = {}

    def _queue(self, topic: FanoutTopic, key: str) -> "asyncio.Queue[str]":
        return self.queues.setdefault((topic, key), asyncio.Queue())

    async def publish(self, topic: FanoutTopic, key: str, payload: str) -> int:
        await self._queue(topic, key).put(payload)
        return 1

    async def subscribe(self, topic: FanoutTopic, key: str) -> AsyncIterator[str]:
        queue = self._queue(topic, key)
        while True:
            yield await queue.get()
