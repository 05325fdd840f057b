"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderPaymentStatusChanged,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.created_event_handled",
            order_id=str(event.aggregate_id),
            order_number=event.payload.get("order_number"),
            total_amount=event.payload.get("total_amount"),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.status_changed_event_handled",
            order_id=str(event.aggregate_id),
            old_status=event.payload.get("old_status"),
            new_status=event.payload.get("new_status"),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.cancelled_event_handled",
            order_id=str(event.aggregate_id),
            previous_status=event.payload.get("old_status"),
        )


class OrderPaymentStatusChangedHandler(IEventHandler[OrderPaymentStatusChanged]):
    def handle(self, event: OrderPaymentStatusChanged) -> None:
        logger.info(
            "order.payment_status_changed_event_handled",
            order_id=str(event.aggregate_id),
            old_status=event.payload.get("old_status"),
            new_status=event.payload.get("new_status"),
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_payment_status_changed_handler = OrderPaymentStatusChangedHandler()
