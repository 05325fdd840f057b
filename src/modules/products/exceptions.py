"""Catalog exceptions."""

from __future__ import annotations

from typing import Iterable

from shared.domain.exceptions import ConflictError, NotFoundError, UnavailableError


class ProductAlreadyExists(ConflictError):
    """A product with the same SKU already exists."""


class ProductNotFound(NotFoundError):
    """The requested product does not exist or has been soft-deleted."""


class ProductUnavailableError(UnavailableError):
    """One or more products cannot be sold: inactive, deleted or unknown."""

    def __init__(self, product_ids: Iterable[object]) -> None:
        self.product_ids = sorted(str(pid) for pid in product_ids)
        super().__init__(
            "Products unavailable: " + ", ".join(self.product_ids) + "."
        )
