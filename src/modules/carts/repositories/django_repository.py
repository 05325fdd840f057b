"""Django ORM implementation of the Cart repository.

Per-user linearizability comes from locking the single ``Cart`` row;
line rows are only touched while that lock is held.
"""

from __future__ import annotations

from typing import Any, List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from modules.carts.exceptions import CartOwnerNotFound
from modules.carts.models import Cart, CartItem
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return Cart.objects.prefetch_related("items").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_user(self, user_id: Any) -> Optional[Cart]:
        return Cart.objects.prefetch_related("items").filter(user_id=user_id).first()

    def lock(self, user_id: Any, create: bool = False) -> Optional[Cart]:
        cart = Cart.objects.select_for_update().filter(user_id=user_id).first()
        if cart is not None or not create:
            return cart
        if not get_user_model().objects.filter(pk=user_id).exists():
            raise CartOwnerNotFound(f"User {user_id} does not exist.")
        # get_or_create tolerates a concurrent first insert for the same user
        _, created = Cart.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("cart.created", user_id=str(user_id))
        return Cart.objects.select_for_update().filter(user_id=user_id).first()

    def lines(self, cart: Cart) -> List[CartItem]:
        return list(CartItem.objects.filter(cart=cart).order_by("product_id"))

    def add_quantity(self, cart: Cart, product_id: Any, quantity: int) -> CartItem:
        updated = CartItem.objects.filter(cart=cart, product_id=product_id).update(
            quantity=F("quantity") + quantity, updated_at=timezone.now()
        )
        if not updated:
            CartItem.objects.create(cart=cart, product_id=product_id, quantity=quantity)
        self._touch(cart)
        return CartItem.objects.get(cart=cart, product_id=product_id)

    def set_quantity(self, cart: Cart, product_id: Any, quantity: int) -> CartItem:
        item, _ = CartItem.objects.update_or_create(
            cart=cart, product_id=product_id, defaults={"quantity": quantity}
        )
        self._touch(cart)
        return item

    def delete_line(self, cart: Cart, product_id: Any) -> bool:
        deleted, _ = CartItem.objects.filter(cart=cart, product_id=product_id).delete()
        if deleted:
            self._touch(cart)
        return bool(deleted)

    def clear(self, cart: Cart) -> int:
        deleted, _ = CartItem.objects.filter(cart=cart).delete()
        self._touch(cart)
        return deleted

    @staticmethod
    def _touch(cart: Cart) -> None:
        cart.save(update_fields=["updated_at"])
