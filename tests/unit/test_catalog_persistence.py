"""Unit tests for ProductRepository stock handling (mocked AsyncSession)."""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.mp_catalog.infrastructure.persistence import ProductRepository, _escape_like
from src.mp_common.errors import InsufficientStockError

PRODUCT_ID = str(uuid.uuid4())
ORDER_ID = str(uuid.uuid4())


def _result(row: object) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = row
    return result


def _row(**fields: object) -> MagicMock:
    row = MagicMock()
    for key, value in fields.items():
        setattr(row, key, value)
    return row


class TestDecrementStockForOrder:
    async def test_claims_movement_then_decrements(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [_result(_row(order_id=ORDER_ID)), _result(_row(stock=2))]

        applied = await ProductRepository().decrement_stock_for_order(
            db, PRODUCT_ID, ORDER_ID, 3
        )

        assert applied is True
        assert db.execute.await_count == 2

    async def test_already_applied_is_noop(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [_result(None)]

        applied = await ProductRepository().decrement_stock_for_order(
            db, PRODUCT_ID, ORDER_ID, 3
        )

        assert applied is False
        assert db.execute.await_count == 1

    async def test_insufficient_stock_raises(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(_row(order_id=ORDER_ID)),
            _result(None),
            _result(_row(stock=1)),
        ]

        with pytest.raises(InsufficientStockError) as exc_info:
            await ProductRepository().decrement_stock_for_order(db, PRODUCT_ID, ORDER_ID, 3)
        assert "available 1" in exc_info.value.message


class TestQueries:
    async def test_list_active_escapes_category(self) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.fetchall.return_value = []
        db.execute.return_value = result

        await ProductRepository().list_active(db, "50%_off", None, 20, 0)

        params = db.execute.await_args.args[1]
        assert params["category"] == "50\\%\\_off"
        assert params["search"] is None

    def test_escape_like(self) -> None:
        assert _escape_like("a\\b") == "a\\\\b"

    async def test_get_by_id_malformed(self) -> None:
        db = AsyncMock()
        assert await ProductRepository().get_by_id(db, "abc") is None
        db.execute.assert_not_awaited()
