"""ProductRepository Protocol — unit tests inject fakes conforming to it."""

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_catalog.domain.models import Product


class ProductRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, product: Product) -> Product: ...

    async def get_by_id(self, db: AsyncSession, product_id: str) -> Product | None: ...

    async def get_many(
        self, db: AsyncSession, product_ids: Sequence[str]
    ) -> dict[str, Product]: ...

    async def list_active(
        self,
        db: AsyncSession,
        category: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> list[Product]: ...

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[Product]: ...

    async def update(self, db: AsyncSession, product: Product) -> Product | None: ...

    async def deactivate(self, db: AsyncSession, product_id: str) -> bool: ...

    async def decrement_stock_for_order(
        self, db: AsyncSession, product_id: str, order_id: str, quantity: int
    ) -> bool: ...
