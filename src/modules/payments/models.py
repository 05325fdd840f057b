"""Payment model.

At most one payment exists per order: ``order`` is a one-to-one column,
so the database refuses a second row even when two requests pass the
service's existence check at the same time.  ``status`` only moves
through the repository's conditional update; payments are never deleted.
"""

from __future__ import annotations

from typing import Any

from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    TERMINAL_PAYMENT_STATES,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin


class Payment(DomainEventMixin, BaseModel):
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payment",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    transaction_id = models.CharField(  # noqa: DJ01
        max_length=255,
        null=True,
        blank=True,
        default=None,
    )

    class Meta:
        db_table = "payments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="payments_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(amount__gte=0),
                name="payments_amount_non_negative",
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PAYMENT_STATES

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError(
                "Payments cannot be saved after creation; use update_payment_status."
            )
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any):
        raise ValidationError("Payments are never deleted.")

    def __str__(self) -> str:
        return f"Payment {self.id} [{self.status}] for order {self.order_id}"
