"""Domain events for the Orders bounded context.

Payloads carry only JSON-friendly values (strings) so they survive the
outbox round-trip unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when checkout stores a new order.

    Payload: ``order_number``, ``user_id``, ``total_amount``, ``item_count``.
    """


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised for every applied ``status`` transition.

    Payload: ``old_status``, ``new_status``.
    """


@dataclass(frozen=True)
class OrderCancelled(OrderStatusChanged):
    """Raised when the order reaches ``cancelled``."""


@dataclass(frozen=True)
class OrderPaymentStatusChanged(DomainEvent):
    """Raised for every applied ``payment_status`` transition."""
