"""Checkout: turning a user's cart into an order.

One database transaction covers emptying the cart, pricing every line
through the catalog and inserting the order.  If any step fails the whole
unit rolls back, so the cart lines are still there and no partial order
exists.  Prices come from the catalog at this moment, never from the cart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog
from django.db import DatabaseError, IntegrityError, transaction

from modules.carts.exceptions import EmptyCartError
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderLineSnapshotDTO
from modules.orders.events import OrderCreated
from modules.orders.exceptions import CheckoutPersistenceError, InvalidAddressError
from modules.orders.models import HistoryField

if TYPE_CHECKING:
    from modules.addresses.services import AddressBookService
    from modules.carts.dtos import CartLineDTO
    from modules.carts.services import CartService
    from modules.orders.dtos import CheckoutDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.services import CatalogService

logger = structlog.get_logger(__name__)


class CheckoutService:
    """Application service for the checkout use-case (the order factory)."""

    def __init__(
        self,
        cart_service: CartService,
        catalog: CatalogService,
        address_book: AddressBookService,
        order_repository: IOrderRepository,
    ) -> None:
        self._cart = cart_service
        self._catalog = catalog
        self._address_book = address_book
        self._order_repo = order_repository

    def checkout(self, dto: CheckoutDTO) -> Tuple[Order, bool]:
        """Create an order from the user's cart.

        Returns ``(order, created)``; ``created`` is ``False`` when the
        idempotency key had already produced an order for this user.

        Raises:
            InvalidAddressError: address unknown or owned by someone else.
            EmptyCartError: nothing to order.
            ProductUnavailableError: a cart product can no longer be sold.
            CheckoutPersistenceError: storage failed; cart left untouched.
        """
        log = logger.bind(user_id=str(dto.user_id))
        log.info("order.checkout_started")

        if not self._address_book.belongs_to(dto.shipping_address_id, dto.user_id):
            log.warning(
                "order.checkout_invalid_address",
                address_id=str(dto.shipping_address_id),
            )
            raise InvalidAddressError(
                f"Address {dto.shipping_address_id} is not a shipping address "
                f"of user {dto.user_id}."
            )

        stored_key = _scoped_key(dto)
        replay = self._find_replay(stored_key)
        if replay is not None:
            log.info("order.idempotency_hit", order_id=str(replay.id))
            return replay, False

        try:
            order = self._place_order(dto, stored_key)
        except EmptyCartError:
            # A concurrent request with the same key may have consumed the cart.
            replay = self._find_replay(stored_key)
            if replay is None:
                raise
            log.info("order.idempotency_hit", order_id=str(replay.id))
            return replay, False
        except IntegrityError as exc:
            replay = self._find_replay(stored_key)
            if replay is not None:
                log.info("order.idempotency_hit", order_id=str(replay.id))
                return replay, False
            log.error("order.checkout_storage_failed", error=str(exc))
            raise CheckoutPersistenceError(str(exc)) from exc
        except DatabaseError as exc:
            log.error("order.checkout_storage_failed", error=str(exc))
            raise CheckoutPersistenceError(str(exc)) from exc

        log.info(
            "order.checkout_completed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return order, True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @transaction.atomic
    def _place_order(self, dto: CheckoutDTO, stored_key: Optional[str]) -> Order:
        cart_lines = self._cart.read_and_clear(dto.user_id)
        snapshot = self._price_lines(cart_lines)

        order = self._order_repo.create(
            {
                "user_id": dto.user_id,
                "shipping_address_id": dto.shipping_address_id,
                "payment_method": dto.payment_method,
                "idempotency_key": stored_key,
                "lines": [line.model_dump() for line in snapshot],
            }
        )
        self._order_repo.add_history(
            order.id, HistoryField.STATUS, None, OrderStatus.PENDING, "Order created"
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "user_id": str(dto.user_id),
                    "total_amount": str(order.total_amount),
                    "item_count": len(snapshot),
                },
            )
        )
        self._order_repo.record_events(order)
        return self._order_repo.get_by_id(str(order.id)) or order

    def _price_lines(self, cart_lines: List[CartLineDTO]) -> List[OrderLineSnapshotDTO]:
        """Raises ``ProductUnavailableError`` naming every unsellable product."""
        products = self._catalog.get_sellable(line.product_id for line in cart_lines)
        return [
            OrderLineSnapshotDTO(
                product_id=line.product_id,
                product_name=products[str(line.product_id)].name,
                quantity=line.quantity,
                unit_price=products[str(line.product_id)].price,
            )
            for line in cart_lines
        ]

    def _find_replay(self, stored_key: Optional[str]) -> Optional[Order]:
        if not stored_key:
            return None
        return self._order_repo.get_by_idempotency_key(stored_key)


def _scoped_key(dto: CheckoutDTO) -> Optional[str]:
    """Idempotency keys are unique per user, not globally."""
    if not dto.idempotency_key:
        return None
    return f"{dto.user_id}:{dto.idempotency_key}"
