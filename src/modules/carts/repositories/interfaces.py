"""Cart repository interface.

``lock`` must be called inside a transaction; every other write method
assumes the caller already holds the lock on that cart.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart, CartItem


class ICartRepository(IRepository["Cart"]):
    @abstractmethod
    def get_for_user(self, user_id: Any) -> Optional[Cart]:
        """Unlocked read with prefetched items."""

    @abstractmethod
    def lock(self, user_id: Any, create: bool = False) -> Optional[Cart]:
        """Row-lock the user's cart (``SELECT FOR UPDATE``).

        With ``create=True`` a missing cart is created first; raises
        ``CartOwnerNotFound`` when the user does not exist.
        """

    @abstractmethod
    def lines(self, cart: Cart) -> List[CartItem]:
        """Current lines ordered by product id."""

    @abstractmethod
    def add_quantity(self, cart: Cart, product_id: Any, quantity: int) -> CartItem:
        """Insert the line or add ``quantity`` to the existing one."""

    @abstractmethod
    def set_quantity(self, cart: Cart, product_id: Any, quantity: int) -> CartItem:
        """Insert the line or replace its quantity."""

    @abstractmethod
    def delete_line(self, cart: Cart, product_id: Any) -> bool:
        """Remove one line; ``False`` when it did not exist."""

    @abstractmethod
    def clear(self, cart: Cart) -> int:
        """Remove every line; returns how many were removed."""
