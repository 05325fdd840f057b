"""Order domain constants.

Closed enumerations and the legal-transition tables checked by the
guarded transition operations.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    SHIPPED = "shipped", "Shipped"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    """Shared by ``Order.payment_status`` and ``Payment.status``."""

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class PaymentMethod(models.TextChoices):
    CARD = "card", "Card"
    CASH = "cash", "Cash on delivery"
    PAYPAL = "paypal", "PayPal"
    OTHER = "other", "Other"


# A shipped order is committed to fulfillment and can no longer be cancelled.
VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

# Failed and completed are terminal: a failed payment is never resurrected.
VALID_PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: set(),
    PaymentStatus.FAILED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

TERMINAL_PAYMENT_STATES: set[str] = {PaymentStatus.COMPLETED, PaymentStatus.FAILED}

ORDER_NUMBER_MAX_RETRIES = 5


def is_legal_transition(from_status: str, to_status: str) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


def is_legal_payment_transition(from_status: str, to_status: str) -> bool:
    return to_status in VALID_PAYMENT_TRANSITIONS.get(from_status, set())
