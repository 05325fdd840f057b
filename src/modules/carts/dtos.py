"""Cart DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.carts.models import Cart


class CartLineDTO(BaseModel):
    """A single ``(product, quantity)`` line, detached from the database."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int


class CartSnapshotDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    lines: List[CartLineDTO]
    updated_at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @classmethod
    def empty(cls, user_id: int) -> CartSnapshotDTO:
        return cls(user_id=user_id, lines=[])

    @classmethod
    def from_entity(cls, cart: Cart) -> CartSnapshotDTO:
        return cls(
            user_id=cart.user_id,
            lines=[
                CartLineDTO(product_id=item.product_id, quantity=item.quantity)
                for item in cart.items.all()
            ],
            updated_at=cart.updated_at,
        )
