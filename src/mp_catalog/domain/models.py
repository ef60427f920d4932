"""Domain models for mp_catalog — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Product:
    id: str
    seller_id: str  # immutable after creation
    title: str
    description: str
    price_cents: int
    category: str
    stock: int
    images: list[str] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock >= quantity
