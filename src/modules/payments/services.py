"""Payment service layer (the payment ledger).

Business rules enforced:
- An order has at most one payment, failed ones included.
- The amount is always the order's ``total_amount``.
- A payment only moves ``pending -> completed`` or ``pending -> failed``;
  reporting the status it already has is accepted and changes nothing.
- Every status report, applied or replayed, is handed to the
  reconciliation coordinator so a lost order update is repaired by a
  retried callback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.core.persistence import storage_errors
from modules.orders.constants import (
    TERMINAL_PAYMENT_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.payments.events import PaymentCreated, PaymentStatusChanged
from modules.payments.exceptions import (
    DuplicatePaymentError,
    IllegalPaymentTransitionError,
    InvalidPaymentStatusError,
    OrderNotPayable,
    PaymentNotFound,
)

if TYPE_CHECKING:
    from modules.orders.services import OrderService
    from modules.payments.models import Payment
    from modules.payments.reconciliation import ReconciliationCoordinator
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentService:
    """Application service for the payment ledger.

    Receives the payment repository, the order service (read side) and
    the coordinator via constructor injection (DIP).
    """

    def __init__(
        self,
        payment_repository: IPaymentRepository,
        order_service: OrderService,
        coordinator: ReconciliationCoordinator,
    ) -> None:
        self._repo = payment_repository
        self._orders = order_service
        self._coordinator = coordinator

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_payment(
        self,
        order_id: Any,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Payment:
        """Open the single payment of an order.

        Cash is settled on delivery terms, so a cash payment is stored as
        ``completed`` and the order is reconciled in the same transaction.

        Raises:
            OrderNotFound: unknown order.
            DuplicatePaymentError: the order already has a payment.
            OrderNotPayable: the order is not pending payment.
            PersistenceError: the store failed; nothing was written.
        """
        log = logger.bind(order_id=str(order_id))

        with storage_errors("payment.storage_failed", order_id=str(order_id)):
            with transaction.atomic():
                order = self._orders.get_order(order_id)

                if self._repo.exists_for_order(order.id):
                    log.warning("payment.duplicate")
                    raise DuplicatePaymentError(f"Order {order.id} already has a payment.")

                if (
                    order.status != OrderStatus.PENDING
                    or order.payment_status != PaymentStatus.PENDING
                ):
                    log.warning(
                        "payment.order_not_payable",
                        order_status=order.status,
                        payment_status=order.payment_status,
                    )
                    raise OrderNotPayable(
                        f"Order {order.id} is {order.status}/{order.payment_status}; "
                        f"it cannot take a payment."
                    )

                method = payment_method or order.payment_method
                initial_status = (
                    PaymentStatus.COMPLETED
                    if method == PaymentMethod.CASH
                    else PaymentStatus.PENDING
                )

                try:
                    payment = self._repo.create(
                        {
                            "order_id": order.id,
                            "amount": order.total_amount,
                            "payment_method": method,
                            "status": initial_status,
                            "transaction_id": transaction_id or None,
                        }
                    )
                except IntegrityError as exc:
                    log.warning("payment.duplicate", source="constraint")
                    raise DuplicatePaymentError(
                        f"Order {order.id} already has a payment."
                    ) from exc

                payment.add_domain_event(
                    PaymentCreated(
                        aggregate_id=payment.id,
                        payload={
                            "order_id": str(order.id),
                            "amount": str(payment.amount),
                            "payment_method": str(method),
                            "status": str(initial_status),
                        },
                    )
                )
                self._repo.record_events(payment)

                if initial_status == PaymentStatus.COMPLETED:
                    self._coordinator.reconcile(payment)

        log.info(
            "payment.created",
            payment_id=str(payment.id),
            amount=str(payment.amount),
            payment_method=str(method),
            status=str(initial_status),
        )
        return payment

    def update_payment_status(
        self,
        payment_id: Any,
        new_status: str,
        transaction_id: Optional[str] = None,
    ) -> Payment:
        """Record the gateway's verdict and reconcile the order.

        Raises:
            InvalidPaymentStatusError: ``new_status`` is not terminal.
            PaymentNotFound: unknown payment.
            IllegalPaymentTransitionError: already in the other terminal state.
            PersistenceError: the store failed; nothing was written.
        """
        if new_status not in TERMINAL_PAYMENT_STATES:
            raise InvalidPaymentStatusError(
                f"Payment status can only be set to completed or failed, not {new_status}."
            )

        log = logger.bind(payment_id=str(payment_id), new_status=str(new_status))

        with storage_errors("payment.storage_failed", payment_id=str(payment_id)):
            with transaction.atomic():
                applied = self._repo.compare_and_set_status(
                    payment_id, PaymentStatus.PENDING, new_status, transaction_id
                )
                payment = self._repo.get_by_id(str(payment_id))
                if payment is None:
                    raise PaymentNotFound(f"Payment {payment_id} not found.")

                if applied:
                    payment.add_domain_event(
                        PaymentStatusChanged(
                            aggregate_id=payment.id,
                            payload={
                                "order_id": str(payment.order_id),
                                "old_status": str(PaymentStatus.PENDING),
                                "new_status": str(new_status),
                            },
                        )
                    )
                    self._repo.record_events(payment)
                    log.info("payment.status_updated", order_id=str(payment.order_id))
                elif payment.status == new_status:
                    log.info("payment.status_replayed", order_id=str(payment.order_id))
                else:
                    log.warning("payment.illegal_transition", current=payment.status)
                    raise IllegalPaymentTransitionError(
                        payment.id, payment.status, new_status
                    )

                self._coordinator.reconcile(payment)

        return payment

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_payment(self, payment_id: Any) -> Payment:
        """Raises ``PaymentNotFound`` if the payment does not exist."""
        payment = self._repo.get_by_id(str(payment_id))
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found.")
        return payment

    def get_by_order(self, order_id: Any) -> Payment:
        """Raises ``PaymentNotFound`` if the order has no payment."""
        payment = self._repo.get_by_order(order_id)
        if not payment:
            raise PaymentNotFound(f"No payment for order {order_id}.")
        return payment
