"""Order repository interface.

Extends ``IRepository[Order]`` with the operations of the order store:
snapshot creation, guarded status updates, history and outbox writes.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.core.models import OutboxEvent
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes its OrderItem children and OrderStatusHistory
    records.  Orders are inserted once and then only touched through
    ``compare_and_set``.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order and its items in one unit of work.

        ``data`` must include ``user_id``, ``shipping_address_id``,
        ``payment_method`` and ``lines`` (list of dicts with ``product_id``,
        ``product_name``, ``quantity``, ``unit_price``), and optionally
        ``idempotency_key``.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and history."""

    @abstractmethod
    def list_by_user(
        self, user_id: Any, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet:
        """Orders of one user, newest first."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def compare_and_set(
        self, order_id: Any, field: str, expected: str, new_value: str
    ) -> bool:
        """Set ``field`` to ``new_value`` only where it still equals ``expected``.

        Returns ``False`` when no row matched (nothing written).
        """

    @abstractmethod
    def current_value(self, order_id: Any, field: str) -> Optional[str]:
        """Stored value of ``field``, or ``None`` for an unknown order."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        field: str,
        old_value: Optional[str],
        new_value: str,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record an applied change in the order's audit trail."""

    @abstractmethod
    def record_events(self, order: Order) -> List[OutboxEvent]:
        """Write the order's pending domain events to the outbox."""
