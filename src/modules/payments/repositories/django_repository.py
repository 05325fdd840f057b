"""Django ORM implementation of the Payment repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.core.outbox import flush_domain_events
from modules.payments.models import Payment
from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentDjangoRepository(IPaymentRepository):
    def get_by_id(self, id: str) -> Optional[Payment]:
        try:
            return Payment.objects.select_related("order").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order(self, order_id: Any) -> Optional[Payment]:
        try:
            return (
                Payment.objects.select_related("order")
                .filter(order_id=order_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def exists_for_order(self, order_id: Any) -> bool:
        return Payment.objects.filter(order_id=order_id).exists()

    def create(self, data: Dict[str, Any]) -> Payment:
        with transaction.atomic():
            payment = Payment.objects.create(**data)
        logger.info(
            "payment.persisted",
            payment_id=str(payment.id),
            order_id=str(payment.order_id),
            status=payment.status,
        )
        return payment

    def compare_and_set_status(
        self,
        payment_id: Any,
        expected: str,
        new_status: str,
        transaction_id: Optional[str] = None,
    ) -> bool:
        changes: Dict[str, Any] = {"status": new_status, "updated_at": timezone.now()}
        if transaction_id:
            changes["transaction_id"] = transaction_id
        try:
            updated = Payment.objects.filter(id=payment_id, status=expected).update(
                **changes
            )
        except (ValueError, ValidationError):
            return False
        return updated == 1

    def record_events(self, payment: Payment) -> List[OutboxEvent]:
        return flush_domain_events(payment, topic="payments")
