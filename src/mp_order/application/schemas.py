# src/mp_order/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.mp_common.enums import OrderStatus
from src.mp_common.ids import normalize_id
from src.mp_order.domain.models import Order


def _uuid_field(v: str) -> str:
    normalized = normalize_id(v)
    if normalized is None:
        raise ValueError("must be a valid id")
    return normalized


class OrderInput(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)

    @field_validator("product_id")
    @classmethod
    def product_is_uuid(cls, v: str) -> str:
        return _uuid_field(v)


class UpdateOrderStatusInput(BaseModel):
    order_id: str
    status: OrderStatus


class ExecutePaymentInput(BaseModel):
    payment_id: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9-]+$")
    payer_id: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9-]+$")
    order_id: str


class PaymentPayload(BaseModel):
    approval_url: str
    payment_id: str


class OrderEvent(BaseModel):
    """Fanout payload for order status changes (order room + subscription topic)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    buyer_id: str
    seller_id: str
    product_id: str
    quantity: int
    unit_price_cents: int
    total_amount_cents: int
    status: OrderStatus
    payment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderEvent":
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            product_id=order.product_id,
            quantity=order.quantity,
            unit_price_cents=order.unit_price_cents,
            total_amount_cents=order.total_amount_cents,
            status=order.status,
            payment_id=order.payment_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def to_domain(self) -> Order:
        return Order(
            id=self.id,
            buyer_id=self.buyer_id,
            seller_id=self.seller_id,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price_cents=self.unit_price_cents,
            total_amount_cents=self.total_amount_cents,
            status=self.status,
            payment_id=self.payment_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
