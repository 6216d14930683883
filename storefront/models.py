"""Catalog models - Pydantic models for rows read from Supabase."""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from storefront.money import to_decimal as _to_decimal


class Product(BaseModel):
    """Catalog product, as far as the cart needs it."""

    model_config = ConfigDict(extra="ignore")  # Ignore unknown columns from DB

    id: str
    name: str
    price: Decimal
    image_url: Optional[str] = None
    stock: int = 0

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return _to_decimal(v)

    @field_validator("stock", mode="before")
    @classmethod
    def default_stock(cls, v):
        return 0 if v is None else v
