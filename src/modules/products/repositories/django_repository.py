"""Django ORM implementation of the Product repository.

Methods return ``None`` (or omit entries) instead of raising for missing
products; the service layer decides how to translate absence.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

import structlog

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.products.models import Product, ProductStatus
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Return a live product, ``None`` for unknown, deleted or malformed IDs."""
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def listed(self) -> QuerySet[Product]:
        return Product.objects.alive()

    def get_sellable_by_ids(self, ids: Iterable[str]) -> Dict[str, Product]:
        wanted = [str(i) for i in ids]
        if not wanted:
            return {}
        try:
            queryset = Product.objects.alive().filter(
                id__in=wanted, status=ProductStatus.ACTIVE
            )
            return {str(product.id): product for product in queryset}
        except (ValueError, ValidationError):
            return {}

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True
