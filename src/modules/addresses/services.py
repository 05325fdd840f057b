"""Address book service.

``belongs_to`` is the only call the checkout path makes; the rest backs
the address book API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog

from modules.addresses.exceptions import AddressNotFound

if TYPE_CHECKING:
    from modules.addresses.dtos import CreateAddressDTO
    from modules.addresses.models import Address
    from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressBookService:
    def __init__(self, repository: IAddressRepository) -> None:
        self._repo = repository

    def belongs_to(self, address_id: Any, user_id: Any) -> bool:
        return self._repo.get_owned(str(address_id), user_id) is not None

    def create_address(self, user_id: Any, dto: CreateAddressDTO) -> Address:
        return self._repo.create({"user_id": user_id, **dto.model_dump()})

    def list_addresses(self, user_id: Any) -> List[Address]:
        return self._repo.list_by_user(user_id)

    def get_address(self, address_id: str, user_id: Any) -> Address:
        address = self._repo.get_owned(address_id, user_id)
        if not address:
            raise AddressNotFound(f"Address {address_id} not found.")
        return address

    def delete_address(self, address_id: str, user_id: Any) -> None:
        address = self.get_address(address_id, user_id)
        self._repo.delete(str(address.id))
