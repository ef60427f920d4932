"""Pydantic input schemas for mp_catalog.

`price` arrives in currency units (GraphQL Float) and is normalised to
integer cents here; everything past this module works in cents.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from src.mp_common.cents import to_cents

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class ProductInput(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=2000)
    price: Decimal = Field(..., ge=0)
    category: str = Field(..., min_length=2, max_length=50)
    stock: int = Field(..., ge=0)
    images: list[str] | None = None

    @field_validator("title", "category", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @property
    def price_cents(self) -> int:
        return to_cents(self.price)


class ProductQuery(BaseModel):
    category: str | None = None
    search: str | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = Field(0, ge=0)

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return max(1, min(v, MAX_PAGE_SIZE))

    @field_validator("category", "search")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None
