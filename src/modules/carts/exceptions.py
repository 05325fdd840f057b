"""Cart domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import ConflictError, DomainValidationError, NotFoundError


class InvalidQuantity(DomainValidationError):
    """A line quantity that must be positive was not."""


class CartItemNotFound(NotFoundError):
    """The cart has no line for the requested product."""


class EmptyCartError(ConflictError):
    """Checkout was attempted on a cart with no lines.

    Two racing checkouts of the same cart end with one order and one of
    these: the loser finds the cart already consumed.
    """


class CartOwnerNotFound(NotFoundError):
    """A cart was requested for a user id with no account."""
