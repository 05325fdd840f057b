"""Payment repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.core.models import OutboxEvent
    from modules.payments.models import Payment


class IPaymentRepository(IRepository["Payment"]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Payment]:
        """Retrieve a payment with its order, ``None`` if absent."""

    @abstractmethod
    def get_by_order(self, order_id: Any) -> Optional[Payment]: ...

    @abstractmethod
    def exists_for_order(self, order_id: Any) -> bool: ...

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Payment:
        """Insert a payment inside its own savepoint.

        Raises ``IntegrityError`` when the order already has one.
        """

    @abstractmethod
    def compare_and_set_status(
        self,
        payment_id: Any,
        expected: str,
        new_status: str,
        transaction_id: Optional[str] = None,
    ) -> bool:
        """Conditional status update; ``False`` when nothing matched."""

    @abstractmethod
    def record_events(self, payment: Payment) -> List[OutboxEvent]: ...
