"""Django ORM implementation of the Order repository.

Status changes never go through ``Order.save()``: ``compare_and_set`` is a
single conditional ``UPDATE ... WHERE id = :id AND <field> = :expected``,
so two writers racing on the same order cannot both succeed and no row
lock is held between reading and writing.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.core.outbox import flush_domain_events
from modules.orders.models import HistoryField, Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

GUARDED_FIELDS = frozenset(HistoryField.values)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert the order with its total already computed, then its items."""
        lines = data["lines"]
        total = sum(
            (Decimal(line["unit_price"]) * line["quantity"] for line in lines),
            Decimal("0.00"),
        )

        order = Order(
            user_id=data["user_id"],
            shipping_address_id=data["shipping_address_id"],
            payment_method=data["payment_method"],
            idempotency_key=data.get("idempotency_key"),
            total_amount=total,
        )
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=line["product_id"],
                    product_name=line["product_name"],
                    position=position,
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    subtotal=Decimal(line["unit_price"]) * line["quantity"],
                )
                for position, line in enumerate(lines)
            ]
        )

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            item_count=len(lines),
            total_amount=str(total),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return (
                Order.objects.prefetch_related("items", "status_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_by_user(
        self, user_id: Any, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet:
        queryset = (
            Order.objects.filter(user_id=user_id)
            .prefetch_related("items", "status_history")
            .order_by("-created_at", "-id")
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return (
            Order.objects.prefetch_related("items", "status_history")
            .filter(idempotency_key=key)
            .first()
        )

    # ------------------------------------------------------------------
    # Guarded transitions
    # ------------------------------------------------------------------

    def compare_and_set(
        self, order_id: Any, field: str, expected: str, new_value: str
    ) -> bool:
        if field not in GUARDED_FIELDS:
            raise ValueError(f"{field} is not a guarded order field.")
        try:
            updated = Order.objects.filter(id=order_id, **{field: expected}).update(
                **{field: new_value, "updated_at": timezone.now()}
            )
        except (ValueError, ValidationError):
            return False
        return updated == 1

    def current_value(self, order_id: Any, field: str) -> Optional[str]:
        try:
            return (
                Order.objects.filter(id=order_id)
                .values_list(field, flat=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def add_history(
        self,
        order_id: Any,
        field: str,
        old_value: Optional[str],
        new_value: str,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            field=field,
            old_value=old_value,
            new_value=new_value,
            notes=notes,
        )
        logger.debug(
            "order.history_added",
            order_id=str(order_id),
            field=field,
            old_value=old_value,
            new_value=new_value,
        )
        return history

    def record_events(self, order: Order) -> List[OutboxEvent]:
        return flush_domain_events(order, topic="orders")
