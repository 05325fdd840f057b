"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for catalog products."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def listed(self) -> QuerySet[Product]:
        """Products that have not been deleted, unevaluated so callers can filter."""

    @abstractmethod
    def get_sellable_by_ids(self, ids: Iterable[str]) -> Dict[str, Product]:
        """Map ``str(id)`` → product for the ids that are currently sellable."""

    @abstractmethod
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product; ``False`` when it does not exist."""
