"""Order service layer (the order store).

The only writer of ``Order.status`` and ``Order.payment_status``.  Every
transition is a compare-and-set against the value the caller says it
observed:

- an illegal ``from -> to`` pair is rejected before anything is read;
- a stored value different from ``from`` is rejected as stale;
- an applied transition writes the new value, one history row and one
  outbox event in the same transaction.

``advance_status`` is the only place that retries, and only a bounded
number of times.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.core.persistence import storage_errors
from modules.orders.constants import (
    OrderStatus,
    is_legal_payment_transition,
    is_legal_transition,
)
from modules.orders.events import (
    OrderCancelled,
    OrderPaymentStatusChanged,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    IllegalStatusTransitionError,
    OrderNotFound,
    StaleTransitionError,
)
from modules.orders.models import HistoryField

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives the order repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Guarded transitions
    # ------------------------------------------------------------------

    def transition_status(
        self,
        order_id: Any,
        from_status: str,
        to_status: str,
        notes: str = "",
    ) -> Order:
        """Move ``status`` from ``from_status`` to ``to_status``.

        Raises:
            IllegalStatusTransitionError: the pair is not a legal edge.
            OrderNotFound: the order does not exist.
            StaleTransitionError: the stored status is not ``from_status``.
            PersistenceError: the store failed; nothing was written.
        """
        if not is_legal_transition(from_status, to_status):
            logger.warning(
                "order.illegal_transition",
                order_id=str(order_id),
                from_status=from_status,
                to_status=to_status,
            )
            raise IllegalStatusTransitionError(HistoryField.STATUS, from_status, to_status)

        if to_status == OrderStatus.CANCELLED:
            event_class = OrderCancelled
        else:
            event_class = OrderStatusChanged
        return self._apply(
            order_id, HistoryField.STATUS, from_status, to_status, notes, event_class
        )

    def transition_payment_status(
        self,
        order_id: Any,
        from_status: str,
        to_status: str,
        notes: str = "",
    ) -> Order:
        """Same contract as ``transition_status`` over ``payment_status``."""
        if not is_legal_payment_transition(from_status, to_status):
            logger.warning(
                "order.illegal_payment_transition",
                order_id=str(order_id),
                from_status=from_status,
                to_status=to_status,
            )
            raise IllegalStatusTransitionError(
                HistoryField.PAYMENT_STATUS, from_status, to_status
            )
        return self._apply(
            order_id,
            HistoryField.PAYMENT_STATUS,
            from_status,
            to_status,
            notes,
            OrderPaymentStatusChanged,
        )

    def advance_status(self, order_id: Any, to_status: str, notes: str = "") -> Order:
        """Transition from whatever status is stored now.

        Re-reads and retries when another writer gets in between, up to
        ``ORDER_TRANSITION_MAX_RETRIES`` attempts.
        """
        attempts = max(1, settings.ORDER_TRANSITION_MAX_RETRIES)
        attempt = 0
        while True:
            attempt += 1
            current = self._order_repo.current_value(order_id, HistoryField.STATUS)
            if current is None:
                raise OrderNotFound(f"Order {order_id} not found.")
            try:
                return self.transition_status(order_id, current, to_status, notes)
            except StaleTransitionError:
                if attempt >= attempts:
                    raise
                logger.info(
                    "order.transition_retry",
                    order_id=str(order_id),
                    attempt=attempt,
                    to_status=to_status,
                )

    def cancel_order(self, order_id: Any, notes: str = "") -> Order:
        """Cancel a pending or paid order.

        Raises:
            IllegalStatusTransitionError: the order is shipped or terminal.
        """
        return self.advance_status(
            order_id, OrderStatus.CANCELLED, notes or "Order cancelled"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> Order:
        """Raises ``OrderNotFound`` if the order does not exist."""
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_by_user(
        self, user_id: Any, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet:
        return self._order_repo.list_by_user(user_id, filters)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        order_id: Any,
        field: str,
        from_status: str,
        to_status: str,
        notes: str,
        event_class: type,
    ) -> Order:
        log = logger.bind(
            order_id=str(order_id),
            field=field,
            from_status=from_status,
            to_status=to_status,
        )
        with storage_errors("order.transition_storage_failed", order_id=str(order_id)):
            with transaction.atomic():
                if not self._order_repo.compare_and_set(
                    order_id, field, from_status, to_status
                ):
                    current = self._order_repo.current_value(order_id, field)
                    if current is None:
                        raise OrderNotFound(f"Order {order_id} not found.")
                    log.info("order.stale_transition", current=current)
                    raise StaleTransitionError(order_id, field, from_status, current)

                self._order_repo.add_history(
                    order_id, field, from_status, to_status, notes
                )
                order = self._order_repo.get_by_id(str(order_id))
                order.add_domain_event(
                    event_class(
                        aggregate_id=order.id,
                        payload={"old_status": from_status, "new_status": to_status},
                    )
                )
                self._order_repo.record_events(order)

        log.info("order.transition_applied")
        return order
