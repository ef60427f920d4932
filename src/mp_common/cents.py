"""Integer money helpers.

All prices and totals are stored as int cents. Decimal is used only at the
edges: parsing client amounts and rendering gateway amount strings.
"""

from decimal import ROUND_HALF_UP, Decimal


def to_cents(amount: float | str | Decimal) -> int:
    """Convert a currency amount to cents: 12.345 -> 1235, '0.1' -> 10."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int(value * 100)


def cents_to_float(cents: int) -> float:
    """Currency units as float, for the GraphQL Float fields only."""
    return cents / 100


def cents_to_amount(cents: int) -> str:
    """Gateway amount string: 6500 -> '65.00'. Negative amounts are rejected."""
    if cents < 0:
        raise ValueError(f"Amount must not be negative, got {cents}")
    return f"{cents // 100}.{cents % 100:02d}"
