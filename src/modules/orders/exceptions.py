"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from shared.domain.exceptions import (
    ConflictError,
    DomainValidationError,
    NotFoundError,
    PersistenceError,
)


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""


class InvalidAddressError(DomainValidationError):
    """The shipping address does not exist or belongs to another user."""


class IllegalStatusTransitionError(DomainValidationError):
    """The requested ``from → to`` pair is not in the transition table.

    Raised before any read of the stored state; nothing is written.
    """

    def __init__(self, field: str, from_status: str, to_status: str) -> None:
        self.field = field
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot transition {field} from {from_status} to {to_status}.")


class StaleTransitionError(ConflictError):
    """The stored value no longer equals the expected ``from`` value.

    Nothing was written.  ``current`` carries the value actually found so
    callers can re-read and decide whether to retry.
    """

    def __init__(self, order_id: object, field: str, expected: str, current: str) -> None:
        self.order_id = order_id
        self.field = field
        self.expected = expected
        self.current = current
        super().__init__(
            f"Order {order_id} {field} is {current}, expected {expected}."
        )


class CheckoutPersistenceError(PersistenceError):
    """Storing the order failed; the cart was restored by the rollback."""
