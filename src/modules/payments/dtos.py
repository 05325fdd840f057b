"""Payment DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from modules.orders.constants import PaymentMethod, PaymentStatus


class CreatePaymentDTO(BaseModel):
    """``payment_method`` defaults to the one chosen at checkout."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None


class PaymentStatusUpdateDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PaymentStatus
    transaction_id: Optional[str] = None
