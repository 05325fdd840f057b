"""Cart service layer.

Every operation runs inside ``transaction.atomic`` and starts by locking
the user's cart row, so concurrent adds, quantity changes and checkout's
``read_and_clear`` for the same user apply in some serial order.  A line
is never both turned into an order and left in the cart, and a line added
while a checkout is running is either in that order or still in the cart
afterwards, never lost.

Storage failures surface as ``PersistenceError`` after the rollback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog
from django.db import transaction

from modules.carts.dtos import CartLineDTO, CartSnapshotDTO
from modules.carts.exceptions import CartItemNotFound, EmptyCartError, InvalidQuantity
from modules.core.persistence import storage_errors
from modules.products.exceptions import ProductUnavailableError

if TYPE_CHECKING:
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.products.services import CatalogService

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for the per-user cart (the cart store).

    Receives the cart repository and the catalog via constructor injection.
    """

    def __init__(self, cart_repository: ICartRepository, catalog: CatalogService) -> None:
        self._repo = cart_repository
        self._catalog = catalog

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_line(self, user_id: Any, product_id: Any, quantity: int = 1) -> CartSnapshotDTO:
        """Add ``quantity`` units, summing with an existing line.

        Raises:
            InvalidQuantity: quantity is not a positive integer.
            ProductUnavailableError: product unknown, deleted or inactive.
            CartOwnerNotFound: no user with ``user_id``.
            PersistenceError: the cart could not be stored.
        """
        _require_positive(quantity)

        with storage_errors("cart.storage_failed", user_id=str(user_id)):
            self._require_sellable(product_id)
            with transaction.atomic():
                cart = self._repo.lock(user_id, create=True)
                item = self._repo.add_quantity(cart, product_id, quantity)
                snapshot = self._snapshot(cart)
        logger.info(
            "cart.line_added",
            user_id=str(user_id),
            product_id=str(product_id),
            added=quantity,
            quantity=item.quantity,
        )
        return snapshot

    def set_line_quantity(
        self, user_id: Any, product_id: Any, quantity: int
    ) -> CartSnapshotDTO:
        """Replace a line's quantity; ``quantity <= 0`` removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity("Quantity must be an integer.")
        if quantity <= 0:
            return self._drop_line(user_id, product_id)

        with storage_errors("cart.storage_failed", user_id=str(user_id)):
            self._require_sellable(product_id)
            with transaction.atomic():
                cart = self._repo.lock(user_id, create=True)
                self._repo.set_quantity(cart, product_id, quantity)
                snapshot = self._snapshot(cart)
        logger.info(
            "cart.line_quantity_set",
            user_id=str(user_id),
            product_id=str(product_id),
            quantity=quantity,
        )
        return snapshot

    def remove_line(self, user_id: Any, product_id: Any) -> CartSnapshotDTO:
        """Raises ``CartItemNotFound`` when the cart has no such line."""
        with storage_errors("cart.storage_failed", user_id=str(user_id)):
            with transaction.atomic():
                cart = self._repo.lock(user_id)
                if cart is None or not self._repo.delete_line(cart, product_id):
                    raise CartItemNotFound(f"Product {product_id} is not in the cart.")
                snapshot = self._snapshot(cart)
        logger.info("cart.line_removed", user_id=str(user_id), product_id=str(product_id))
        return snapshot

    def clear(self, user_id: Any) -> CartSnapshotDTO:
        with storage_errors("cart.storage_failed", user_id=str(user_id)):
            with transaction.atomic():
                cart = self._repo.lock(user_id)
                if cart is None:
                    return CartSnapshotDTO.empty(user_id)
                removed = self._repo.clear(cart)
                snapshot = self._snapshot(cart)
        logger.info("cart.cleared", user_id=str(user_id), removed=removed)
        return snapshot

    def read_and_clear(self, user_id: Any) -> List[CartLineDTO]:
        """Return the cart's lines and empty it, as one locked step.

        Meant to run inside the checkout transaction: if the caller rolls
        back, the lines come back with it.

        Raises:
            EmptyCartError: the cart is missing or has no lines.
            PersistenceError: the cart could not be read or emptied.
        """
        with storage_errors("cart.storage_failed", user_id=str(user_id)):
            with transaction.atomic():
                cart = self._repo.lock(user_id)
                items = self._repo.lines(cart) if cart is not None else []
                if not items:
                    logger.info("cart.read_and_clear_empty", user_id=str(user_id))
                    raise EmptyCartError(f"Cart of user {user_id} is empty.")

                lines = [
                    CartLineDTO(product_id=item.product_id, quantity=item.quantity)
                    for item in items
                ]
                self._repo.clear(cart)
        logger.info(
            "cart.read_and_cleared",
            user_id=str(user_id),
            line_count=len(lines),
        )
        return lines

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, user_id: Any) -> CartSnapshotDTO:
        cart = self._repo.get_for_user(user_id)
        if cart is None:
            return CartSnapshotDTO.empty(user_id)
        return CartSnapshotDTO.from_entity(cart)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _drop_line(self, user_id: Any, product_id: Any) -> CartSnapshotDTO:
        with storage_errors("cart.storage_failed", user_id=str(user_id)):
            with transaction.atomic():
                cart = self._repo.lock(user_id)
                if cart is None:
                    return CartSnapshotDTO.empty(user_id)
                removed = self._repo.delete_line(cart, product_id)
                snapshot = self._snapshot(cart)
        logger.info(
            "cart.line_removed",
            user_id=str(user_id),
            product_id=str(product_id),
            existed=removed,
        )
        return snapshot

    def _require_sellable(self, product_id: Any) -> None:
        if not self._catalog.is_active(product_id):
            raise ProductUnavailableError([product_id])

    def _snapshot(self, cart) -> CartSnapshotDTO:
        return CartSnapshotDTO(
            user_id=cart.user_id,
            lines=[
                CartLineDTO(product_id=item.product_id, quantity=item.quantity)
                for item in self._repo.lines(cart)
            ],
            updated_at=cart.updated_at,
        )


def _require_positive(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity("Quantity must be a positive integer.")
