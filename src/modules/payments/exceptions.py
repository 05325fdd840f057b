"""Payment ledger exceptions."""

from __future__ import annotations

from shared.domain.exceptions import ConflictError, DomainValidationError, NotFoundError


class PaymentNotFound(NotFoundError):
    """The requested payment does not exist."""


class DuplicatePaymentError(ConflictError):
    """The order already has a payment.

    A failed payment still counts: an order gets exactly one payment.
    """


class OrderNotPayable(ConflictError):
    """The order is no longer awaiting payment (e.g. it was cancelled)."""


class InvalidPaymentStatusError(DomainValidationError):
    """Only ``completed`` and ``failed`` can be reported for a payment."""


class IllegalPaymentTransitionError(ConflictError):
    """The payment already reached a different terminal status."""

    def __init__(self, payment_id: object, current: str, requested: str) -> None:
        self.payment_id = payment_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Payment {payment_id} is already {current}; cannot mark it {requested}."
        )
