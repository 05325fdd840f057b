"""Shipping address book.

An address belongs to exactly one user.  Orders reference addresses with
``PROTECT``; deleting an address is a soft delete so placed orders keep a
valid shipping reference.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel


class Address(SoftDeleteModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    country = models.CharField(max_length=100)
    city = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    address_line = models.CharField(max_length=255)

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="addresses_user_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.address_line}, {self.city} ({self.country})"
