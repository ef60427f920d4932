"""ProductRepository — raw SQL persistence for products and stock movements.

Stock only ever changes through conditional UPDATEs (`stock >= :quantity`),
so a row can never go negative even when two writers race. The decrement
tied to an order is additionally keyed by order id via stock_movements.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
Transaction ownership: the CALLER commits or rolls back.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_catalog.domain.models import Product
from src.mp_common.errors import InsufficientStockError
from src.mp_common.ids import normalize_id

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, seller_id, title, description, price_cents, category,
    images, stock, is_active, created_at, updated_at
"""

_INSERT_PRODUCT_SQL = text(f"""
    INSERT INTO products (seller_id, title, description, price_cents,
                          category, images, stock, is_active)
    VALUES (:seller_id, :title, :description, :price_cents,
            :category, :images, :stock, TRUE)
    RETURNING {_COLUMNS}
""")

_GET_PRODUCT_SQL = text(f"SELECT {_COLUMNS} FROM products WHERE id = :id")

_GET_PRODUCTS_SQL = text(f"""
    SELECT {_COLUMNS} FROM products
    WHERE id = ANY(CAST(:ids AS UUID[]))
""")

_LIST_ACTIVE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE is_active
      AND (CAST(:category AS TEXT) IS NULL
           OR category ILIKE '%' || CAST(:category AS TEXT) || '%')
      AND (CAST(:search AS TEXT) IS NULL
           OR to_tsvector('english', title || ' ' || description)
              @@ plainto_tsquery('english', CAST(:search AS TEXT)))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_LIST_BY_SELLER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE seller_id = :seller_id
    ORDER BY created_at DESC, id DESC
""")

# seller_id is deliberately absent from the SET list
_UPDATE_PRODUCT_SQL = text(f"""
    UPDATE products
    SET title = :title,
        description = :description,
        price_cents = :price_cents,
        category = :category,
        images = :images,
        stock = :stock,
        updated_at = NOW()
    WHERE id = :id AND is_active
    RETURNING {_COLUMNS}
""")

_DEACTIVATE_SQL = text("""
    UPDATE products
    SET is_active = FALSE, updated_at = NOW()
    WHERE id = :id AND is_active
    RETURNING id
""")

_CLAIM_MOVEMENT_SQL = text("""
    INSERT INTO stock_movements (order_id, product_id, quantity)
    VALUES (:order_id, :product_id, :quantity)
    ON CONFLICT (order_id) DO NOTHING
    RETURNING order_id
""")

_DECREMENT_STOCK_SQL = text("""
    UPDATE products
    SET stock = stock - :quantity, updated_at = NOW()
    WHERE id = :product_id AND stock >= :quantity
    RETURNING stock
""")

_GET_STOCK_SQL = text("SELECT stock FROM products WHERE id = :product_id")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_product(row: Any) -> Product:
    return Product(
        id=str(row.id),
        seller_id=str(row.seller_id),
        title=row.title,
        description=row.description,
        price_cents=row.price_cents,
        category=row.category,
        images=list(row.images or []),
        stock=row.stock,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProductRepository:
    """Concrete implementation of ProductRepositoryProtocol using raw SQL."""

    async def create(self, db: AsyncSession, product: Product) -> Product:
        result = await db.execute(
            _INSERT_PRODUCT_SQL,
            {
                "seller_id": product.seller_id,
                "title": product.title,
                "description": product.description,
                "price_cents": product.price_cents,
                "category": product.category,
                "images": product.images,
                "stock": product.stock,
            },
        )
        return _row_to_product(result.one())

    async def get_by_id(self, db: AsyncSession, product_id: str) -> Product | None:
        pid = normalize_id(product_id)
        if pid is None:
            return None
        result = await db.execute(_GET_PRODUCT_SQL, {"id": pid})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def get_many(
        self, db: AsyncSession, product_ids: Sequence[str]
    ) -> dict[str, Product]:
        ids = [i for i in (normalize_id(p) for p in product_ids) if i is not None]
        if not ids:
            return {}
        result = await db.execute(_GET_PRODUCTS_SQL, {"ids": ids})
        return {p.id: p for p in (_row_to_product(row) for row in result.fetchall())}

    async def list_active(
        self,
        db: AsyncSession,
        category: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> list[Product]:
        result = await db.execute(
            _LIST_ACTIVE_SQL,
            {
                "category": _escape_like(category) if category else None,
                "search": search or None,
                "limit": limit,
                "offset": offset,
            },
        )
        return [_row_to_product(row) for row in result.fetchall()]

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[Product]:
        result = await db.execute(_LIST_BY_SELLER_SQL, {"seller_id": seller_id})
        return [_row_to_product(row) for row in result.fetchall()]

    async def update(self, db: AsyncSession, product: Product) -> Product | None:
        result = await db.execute(
            _UPDATE_PRODUCT_SQL,
            {
                "id": product.id,
                "title": product.title,
                "description": product.description,
                "price_cents": product.price_cents,
                "category": product.category,
                "images": product.images,
                "stock": product.stock,
            },
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def deactivate(self, db: AsyncSession, product_id: str) -> bool:
        result = await db.execute(_DEACTIVATE_SQL, {"id": product_id})
        return result.fetchone() is not None

    async def decrement_stock_for_order(
        self, db: AsyncSession, product_id: str, order_id: str, quantity: int
    ) -> bool:
        """Take `quantity` units off the product's stock on behalf of `order_id`.

        Returns False (no-op) if this order already has a stock movement.
        Raises InsufficientStockError when stock < quantity; the caller's
        rollback then also discards the movement row claimed here.
        """
        claimed = await db.execute(
            _CLAIM_MOVEMENT_SQL,
            {"order_id": order_id, "product_id": product_id, "quantity": quantity},
        )
        if claimed.fetchone() is None:
            return False

        result = await db.execute(
            _DECREMENT_STOCK_SQL, {"product_id": product_id, "quantity": quantity}
        )
        if result.fetchone() is None:
            current = (await db.execute(_GET_STOCK_SQL, {"product_id": product_id})).fetchone()
            raise InsufficientStockError(quantity, current.stock if current else 0)
        return True
