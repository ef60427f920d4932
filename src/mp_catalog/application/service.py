"""CatalogService — product CRUD and listing.

Delete policy: deleteProduct is a soft delete (is_active = FALSE). Orders keep
referencing the row, so it must survive; inactive products vanish from
listings, lookups and ordering, and cannot be edited any more.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_catalog.application.schemas import ProductInput, ProductQuery
from src.mp_catalog.domain.models import Product
from src.mp_catalog.domain.repository import ProductRepositoryProtocol
from src.mp_catalog.infrastructure.persistence import ProductRepository
from src.mp_common.errors import ProductNotFoundError
from src.mp_gateway.auth.guards import require_resource_owner, require_seller
from src.mp_gateway.auth.principal import Principal

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, repo: ProductRepositoryProtocol | None = None) -> None:
        self._repo: ProductRepositoryProtocol = repo or ProductRepository()

    async def list_products(self, db: AsyncSession, query: ProductQuery) -> list[Product]:
        return await self._repo.list_active(
            db, query.category, query.search, query.limit, query.offset
        )

    async def get_product(self, db: AsyncSession, product_id: str) -> Product:
        product = await self._repo.get_by_id(db, product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(product_id)
        return product

    async def my_products(
        self, db: AsyncSession, principal: Principal | None
    ) -> list[Product]:
        seller = require_seller(principal)
        return await self._repo.list_by_seller(db, seller.user_id)

    async def create_product(
        self, db: AsyncSession, principal: Principal | None, req: ProductInput
    ) -> Product:
        seller = require_seller(principal)
        draft = Product(
            id="",
            seller_id=seller.user_id,
            title=req.title,
            description=req.description,
            price_cents=req.price_cents,
            category=req.category,
            stock=req.stock,
            images=req.images or [],
        )
        try:
            product = await self._repo.create(db, draft)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Product %s created by seller %s", product.id, seller.user_id)
        return product

    async def update_product(
        self,
        db: AsyncSession,
        principal: Principal | None,
        product_id: str,
        req: ProductInput,
    ) -> Product:
        require_seller(principal)
        current = await self.get_product(db, product_id)
        require_resource_owner(current, principal)

        current.title = req.title
        current.description = req.description
        current.price_cents = req.price_cents
        current.category = req.category
        current.stock = req.stock
        if req.images is not None:
            current.images = req.images
        try:
            updated = await self._repo.update(db, current)
            if updated is None:
                raise ProductNotFoundError(product_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return updated

    async def delete_product(
        self, db: AsyncSession, principal: Principal | None, product_id: str
    ) -> bool:
        require_seller(principal)
        current = await self.get_product(db, product_id)
        require_resource_owner(current, principal)
        try:
            deactivated = await self._repo.deactivate(db, current.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if deactivated:
            logger.info("Product %s deactivated", current.id)
        return deactivated
