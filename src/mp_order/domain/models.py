"""Order domain model — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.mp_common.enums import OrderStatus


@dataclass
class Order:
    id: str
    buyer_id: str
    seller_id: str  # copied from product.seller_id at creation
    product_id: str
    quantity: int
    # Price snapshot taken at creation; never recomputed from the product
    unit_price_cents: int
    total_amount_cents: int
    status: OrderStatus = OrderStatus.PENDING
    payment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING
