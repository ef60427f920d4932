"""Tests for mp_common.cents — integer money helpers."""

from decimal import Decimal

import pytest

from src.mp_common.cents import cents_to_amount, cents_to_float, to_cents


class TestToCents:
    def test_whole_and_fractional(self) -> None:
        assert to_cents(65) == 6500
        assert to_cents(19.99) == 1999
        assert to_cents("0.1") == 10

    def test_rounds_half_up(self) -> None:
        assert to_cents(Decimal("12.345")) == 1235
        assert to_cents(Decimal("12.344")) == 1234

    def test_float_artifacts_do_not_leak(self) -> None:
        # 0.1 + 0.2 == 0.30000000000000004
        assert to_cents(0.1 + 0.2) == 30


class TestRendering:
    def test_cents_to_float(self) -> None:
        assert cents_to_float(1999) == 19.99
        assert cents_to_float(0) == 0.0

    def test_cents_to_amount(self) -> None:
        assert cents_to_amount(6500) == "65.00"
        assert cents_to_amount(5) == "0.05"
        assert cents_to_amount(123456) == "1234.56"

    def test_negative_amount_raises(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            cents_to_amount(-1)
