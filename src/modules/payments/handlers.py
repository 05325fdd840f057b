"""Event handlers for Payments domain events."""

from __future__ import annotations

import structlog

from modules.payments.events import PaymentCreated, PaymentStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class PaymentCreatedHandler(IEventHandler[PaymentCreated]):
    def handle(self, event: PaymentCreated) -> None:
        logger.info(
            "payment.created_event_handled",
            payment_id=str(event.aggregate_id),
            order_id=event.payload.get("order_id"),
            status=event.payload.get("status"),
        )


class PaymentStatusChangedHandler(IEventHandler[PaymentStatusChanged]):
    def handle(self, event: PaymentStatusChanged) -> None:
        logger.info(
            "payment.status_changed_event_handled",
            payment_id=str(event.aggregate_id),
            order_id=event.payload.get("order_id"),
            new_status=event.payload.get("new_status"),
        )


payment_created_handler = PaymentCreatedHandler()
payment_status_changed_handler = PaymentStatusChangedHandler()
