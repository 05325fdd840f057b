"""Domain events for the Payments bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentCreated(DomainEvent):
    """Payload: ``order_id``, ``amount``, ``payment_method``, ``status``."""


@dataclass(frozen=True)
class PaymentStatusChanged(DomainEvent):
    """Payload: ``order_id``, ``old_status``, ``new_status``."""
