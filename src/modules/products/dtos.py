"""Catalog write DTOs (Pydantic v2, immutable).

Prices are stored with two decimal places; anything finer is rejected
instead of silently rounded, so the price a buyer sees in the cart is the
price checkout snapshots.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator

from modules.products.models import ProductStatus


def _check_price(price: Decimal) -> Decimal:
    if price <= 0:
        raise ValueError("Price must be greater than zero.")
    if price.as_tuple().exponent < -2:
        raise ValueError("Price cannot have more than two decimal places.")
    return price


class CreateProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    sku: str
    name: str
    price: Decimal
    description: str = ""

    @field_validator("price")
    @classmethod
    def price_is_sellable(cls, v: Decimal) -> Decimal:
        return _check_price(v)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: str) -> str:
        if not v:
            raise ValueError("SKU must not be empty.")
        return v.upper()


class UpdateProductDTO(BaseModel):
    """Only supplied fields change. Open carts are re-priced at checkout."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str | None = None
    price: Decimal | None = None
    description: str | None = None
    status: ProductStatus | None = None

    @field_validator("price")
    @classmethod
    def price_is_sellable(cls, v: Decimal | None) -> Decimal | None:
        return v if v is None else _check_price(v)
