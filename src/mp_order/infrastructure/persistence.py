# src/mp_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation.

Status changes go through compare_and_set_status: the UPDATE only matches
while the row is still in the expected status, so two concurrent
transitions can't both win.
"""
from collections.abc import Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import OrderStatus
from src.mp_common.ids import normalize_id
from src.mp_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, buyer_id, seller_id, product_id, quantity,
    unit_price_cents, total_amount_cents, status, payment_id,
    created_at, updated_at
"""

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders (buyer_id, seller_id, product_id, quantity,
        unit_price_cents, total_amount_cents, status)
    VALUES (:buyer_id, :seller_id, :product_id, :quantity,
        :unit_price_cents, :total_amount_cents, :status)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDERS_BY_IDS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = ANY(CAST(:ids AS UUID[]))
""")

_LIST_FOR_PARTY_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE buyer_id = :user_id OR seller_id = :user_id
    ORDER BY created_at DESC, id DESC
""")

_ATTACH_PAYMENT_SQL = text(f"""
    UPDATE orders
    SET payment_id = :payment_id,
        updated_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING {_SELECT_COLUMNS}
""")

_CAS_STATUS_SQL = text(f"""
    UPDATE orders
    SET status = :target,
        payment_id = COALESCE(CAST(:payment_id AS TEXT), payment_id),
        updated_at = NOW()
    WHERE id = :id AND status = :expected
    RETURNING {_SELECT_COLUMNS}
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=str(row.id),
        buyer_id=str(row.buyer_id),
        seller_id=str(row.seller_id),
        product_id=str(row.product_id),
        quantity=row.quantity,
        unit_price_cents=row.unit_price_cents,
        total_amount_cents=row.total_amount_cents,
        status=OrderStatus(row.status),
        payment_id=row.payment_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, db: AsyncSession, order: Order) -> Order:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "buyer_id": order.buyer_id,
                "seller_id": order.seller_id,
                "product_id": order.product_id,
                "quantity": order.quantity,
                "unit_price_cents": order.unit_price_cents,
                "total_amount_cents": order.total_amount_cents,
                "status": order.status.value,
            },
        )
        return _row_to_order(result.one())

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None:
        oid = normalize_id(order_id)
        if oid is None:
            return None
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": oid})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def get_many(
        self, db: AsyncSession, order_ids: Sequence[str]
    ) -> dict[str, Order]:
        ids = [i for i in (normalize_id(o) for o in order_ids) if i is not None]
        if not ids:
            return {}
        result = await db.execute(_GET_ORDERS_BY_IDS_SQL, {"ids": ids})
        return {o.id: o for o in (_row_to_order(row) for row in result.fetchall())}

    async def list_for_party(self, db: AsyncSession, user_id: str) -> list[Order]:
        result = await db.execute(_LIST_FOR_PARTY_SQL, {"user_id": user_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def attach_payment(
        self, db: AsyncSession, order_id: str, payment_id: str
    ) -> Order | None:
        """Bind a gateway payment to a PENDING order. None once the order moved on."""
        result = await db.execute(
            _ATTACH_PAYMENT_SQL, {"id": order_id, "payment_id": payment_id}
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def compare_and_set_status(
        self,
        db: AsyncSession,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        payment_id: str | None = None,
    ) -> Order | None:
        """Returns the updated order, or None if the status had already moved."""
        result = await db.execute(
            _CAS_STATUS_SQL,
            {
                "id": order_id,
                "expected": expected.value,
                "target": target.value,
                "payment_id": payment_id,
            },
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None
