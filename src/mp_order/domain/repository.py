"""OrderRepository Protocol — interface contract for persistence layer."""

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import OrderStatus
from src.mp_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, db: AsyncSession, order: Order) -> Order: ...

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None: ...

    async def get_many(
        self, db: AsyncSession, order_ids: Sequence[str]
    ) -> dict[str, Order]: ...

    async def list_for_party(self, db: AsyncSession, user_id: str) -> list[Order]: ...

    async def attach_payment(
        self, db: AsyncSession, order_id: str, payment_id: str
    ) -> Order | None: ...

    async def compare_and_set_status(
        self,
        db: AsyncSession,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        payment_id: str | None = None,
    ) -> Order | None: ...
