"""Address repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.addresses.models import Address


class IAddressRepository(IRepository["Address"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Address:
        """Create an address for ``data["user_id"]``."""

    @abstractmethod
    def list_by_user(self, user_id: Any) -> List[Address]:
        """Live addresses of a user, newest first."""

    @abstractmethod
    def get_owned(self, id: str, user_id: Any) -> Optional[Address]:
        """Return the address only if it is live and owned by ``user_id``."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete an address."""
