# tests/unit/test_order_persistence.py
"""Unit tests for OrderRepository using MagicMock AsyncSession."""
import uuid
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from src.mp_common.enums import OrderStatus
from src.mp_order.domain.models import Order
from src.mp_order.infrastructure.persistence import OrderRepository

ORDER_ID = str(uuid.uuid4())


def _make_row(**kwargs: Any) -> MagicMock:
    """Create a mock row with all Order columns."""
    row = MagicMock()
    row.id = uuid.UUID(kwargs.get("id", ORDER_ID))
    row.buyer_id = uuid.UUID(int=1)
    row.seller_id = uuid.UUID(int=2)
    row.product_id = uuid.UUID(int=3)
    row.quantity = kwargs.get("quantity", 3)
    row.unit_price_cents = kwargs.get("unit_price_cents", 1250)
    row.total_amount_cents = kwargs.get("total_amount_cents", 3750)
    row.status = kwargs.get("status", "PENDING")
    row.payment_id = kwargs.get("payment_id")
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _db_returning(row: Any) -> AsyncMock:
    db = AsyncMock()
    result = MagicMock()
    result.fetchone.return_value = row
    result.one.return_value = row
    db.execute.return_value = result
    return db


class TestOrderRepository:
    async def test_save_maps_returned_row(self) -> None:
        db = _db_returning(_make_row())
        draft = Order(
            id="",
            buyer_id=str(uuid.UUID(int=1)),
            seller_id=str(uuid.UUID(int=2)),
            product_id=str(uuid.UUID(int=3)),
            quantity=3,
            unit_price_cents=1250,
            total_amount_cents=3750,
        )

        saved = await OrderRepository().save(db, draft)

        assert saved.id == ORDER_ID
        assert saved.buyer_id == "00000000-0000-0000-0000-000000000001"
        assert saved.status == OrderStatus.PENDING
        params = db.execute.await_args.args[1]
        assert params["status"] == "PENDING"

    async def test_get_by_id_malformed_id_skips_query(self) -> None:
        db = AsyncMock()
        assert await OrderRepository().get_by_id(db, "order-1") is None
        db.execute.assert_not_awaited()

    async def test_get_by_id_returns_none_when_not_found(self) -> None:
        db = _db_returning(None)
        assert await OrderRepository().get_by_id(db, ORDER_ID) is None

    async def test_compare_and_set_returns_updated_order(self) -> None:
        db = _db_returning(_make_row(status="PAID", payment_id="PAYID-1"))

        order = await OrderRepository().compare_and_set_status(
            db, ORDER_ID, OrderStatus.PENDING, OrderStatus.PAID, payment_id="PAYID-1"
        )

        assert order is not None
        assert order.status == OrderStatus.PAID
        assert order.payment_id == "PAYID-1"
        params = db.execute.await_args.args[1]
        assert params == {
            "id": ORDER_ID,
            "expected": "PENDING",
            "target": "PAID",
            "payment_id": "PAYID-1",
        }

    async def test_compare_and_set_lost_race(self) -> None:
        db = _db_returning(None)
        order = await OrderRepository().compare_and_set_status(
            db, ORDER_ID, OrderStatus.PAID, OrderStatus.SHIPPED
        )
        assert order is None

    async def test_get_many_empty_input(self) -> None:
        db = AsyncMock()
        assert await OrderRepository().get_many(db, ["bad"]) == {}
        db.execute.assert_not_awaited()

    async def test_attach_payment_keeps_order_pending(self) -> None:
        db = _db_returning(_make_row(payment_id="PAYID-7"))

        order = await OrderRepository().attach_payment(db, ORDER_ID, "PAYID-7")

        assert order is not None
        assert order.status == OrderStatus.PENDING
        assert order.payment_id == "PAYID-7"
        sql = str(db.execute.await_args.args[0])
        assert "status = 'PENDING'" in sql
        assert "SET payment_id" in sql
        assert db.execute.await_args.args[1] == {"id": ORDER_ID, "payment_id": "PAYID-7"}

    async def test_attach_payment_after_order_moved(self) -> None:
        db = _db_returning(None)
        assert await OrderRepository().attach_payment(db, ORDER_ID, "PAYID-7") is None
