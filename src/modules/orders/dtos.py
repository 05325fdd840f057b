"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CheckoutDTO``: input for turning a cart into an order.
- ``OrderLineSnapshotDTO``: a priced line, frozen at checkout time.
- ``StatusChangeDTO``: input for the administrative transition endpoint.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus, PaymentMethod


class CheckoutDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    shipping_address_id: UUID
    payment_method: PaymentMethod
    idempotency_key: Optional[str] = None

    @field_validator("idempotency_key")
    @classmethod
    def blank_key_is_no_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class OrderLineSnapshotDTO(BaseModel):
    """One order line with the price the catalog quoted at checkout."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class StatusChangeDTO(BaseModel):
    """``expected_status`` turns the request into a strict compare-and-set."""

    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    expected_status: Optional[OrderStatus] = None
    notes: str = ""
