"""Reconciliation: deriving an order's state from its payment.

The coordinator never writes an order row itself.  It asks
``OrderService`` for guarded transitions that start from ``pending``, so
running it twice for the same payment, or concurrently with a
cancellation, can never regress or double-apply anything:

- payment ``completed``: order ``payment_status`` pending -> completed,
  then ``status`` pending -> paid;
- payment ``failed``: order ``payment_status`` pending -> failed;
- payment ``pending``: nothing.

A transition that finds the order already moved is logged and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Tuple

import structlog

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.exceptions import IllegalStatusTransitionError, StaleTransitionError
from modules.orders.models import HistoryField

if TYPE_CHECKING:
    from modules.orders.services import OrderService
    from modules.payments.models import Payment

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    payment_id: str
    order_id: str
    payment_status: str
    applied: Tuple[str, ...] = field(default_factory=tuple)
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class ReconciliationCoordinator:
    def __init__(self, order_service: OrderService) -> None:
        self._orders = order_service

    def reconcile(self, payment: Payment) -> ReconciliationResult:
        """Bring the payment's order in line with the payment status.

        Only stale or illegal transitions are absorbed; any other error
        (missing order, storage failure) propagates to the caller.
        """
        log = logger.bind(
            payment_id=str(payment.id),
            order_id=str(payment.order_id),
            payment_status=payment.status,
        )
        applied: List[str] = []
        skipped: List[str] = []
        notes = f"Payment {payment.id} {payment.status}"

        for name, transition, expected, target in self._derivations(payment.status):
            try:
                transition(payment.order_id, expected, target, notes)
            except (StaleTransitionError, IllegalStatusTransitionError) as exc:
                log.info(
                    "reconciliation.stale_transition",
                    field=name,
                    target=target,
                    reason=str(exc),
                )
                skipped.append(name)
                continue
            applied.append(name)

        result = ReconciliationResult(
            payment_id=str(payment.id),
            order_id=str(payment.order_id),
            payment_status=payment.status,
            applied=tuple(applied),
            skipped=tuple(skipped),
        )
        log.info("reconciliation.completed", applied=result.applied, skipped=result.skipped)
        return result

    def _derivations(self, payment_status: str) -> List[Tuple[str, Callable, str, str]]:
        if payment_status == PaymentStatus.COMPLETED:
            return [
                (
                    HistoryField.PAYMENT_STATUS,
                    self._orders.transition_payment_status,
                    PaymentStatus.PENDING,
                    PaymentStatus.COMPLETED,
                ),
                (
                    HistoryField.STATUS,
                    self._orders.transition_status,
                    OrderStatus.PENDING,
                    OrderStatus.PAID,
                ),
            ]
        if payment_status == PaymentStatus.FAILED:
            return [
                (
                    HistoryField.PAYMENT_STATUS,
                    self._orders.transition_payment_status,
                    PaymentStatus.PENDING,
                    PaymentStatus.FAILED,
                ),
            ]
        return []
