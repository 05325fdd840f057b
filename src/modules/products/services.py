"""Catalog service.

Two audiences:

* the checkout path, which only needs ``lookup_price`` / ``is_active`` /
  ``resolve_prices`` (the catalog contract consumed by order creation);
* the admin API, which maintains products.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable

import structlog
from django.db import transaction

from modules.products.exceptions import (
    ProductAlreadyExists,
    ProductNotFound,
    ProductUnavailableError,
)
from modules.products.models import Product

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CatalogService:
    """Application service for the product catalog.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Checkout contract
    # ------------------------------------------------------------------

    def lookup_price(self, product_id: str) -> Decimal:
        """Current unit price of a sellable product.

        Raises:
            ProductUnavailableError: unknown, deleted or inactive product.
        """
        return self.resolve_prices([product_id])[str(product_id)]

    def is_active(self, product_id: str) -> bool:
        product = self._repo.get_by_id(str(product_id))
        return bool(product and product.is_sellable)

    def resolve_prices(self, product_ids: Iterable[Any]) -> Dict[str, Decimal]:
        """Resolve every product's current price or fail as a whole.

        Raises:
            ProductUnavailableError: listing every id that cannot be sold.
        """
        wanted = {str(pid) for pid in product_ids}
        found = self._repo.get_sellable_by_ids(wanted)
        missing = wanted - set(found)
        if missing:
            logger.warning("catalog.products_unavailable", product_ids=sorted(missing))
            raise ProductUnavailableError(missing)
        return {pid: product.price for pid, product in found.items()}

    def get_sellable(self, product_ids: Iterable[Any]) -> Dict[str, Product]:
        """Like ``resolve_prices`` but returns the product rows."""
        wanted = {str(pid) for pid in product_ids}
        found = self._repo.get_sellable_by_ids(wanted)
        missing = wanted - set(found)
        if missing:
            logger.warning("catalog.products_unavailable", product_ids=sorted(missing))
            raise ProductUnavailableError(missing)
        return found

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Raises ``ProductAlreadyExists`` if the SKU is taken."""
        log = logger.bind(sku=dto.sku)

        if self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            sku=dto.sku,
            name=dto.name,
            price=dto.price,
            description=dto.description,
        )
        product = self._repo.save(product)
        log.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        changed = dto.model_dump(exclude_none=True)
        for field, value in changed.items():
            setattr(product, field, value)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id), fields=sorted(changed))
        return product

    def browse(self) -> QuerySet[Product]:
        """Catalog listing; the API layer applies filters and pagination."""
        return self._repo.listed()

    def get_product(self, id: str) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete; carts still holding it will fail checkout cleanly."""
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")
