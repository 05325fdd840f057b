"""Django ORM implementation of the Address repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Address:
        address = Address.objects.create(**data)
        logger.info(
            "address.created",
            address_id=str(address.id),
            user_id=str(address.user_id),
        )
        return address

    def list_by_user(self, user_id: Any) -> List[Address]:
        return list(Address.objects.alive().filter(user_id=user_id))

    def get_owned(self, id: str, user_id: Any) -> Optional[Address]:
        try:
            return Address.objects.alive().filter(id=id, user_id=user_id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def delete(self, id: str) -> bool:
        address = self.get_by_id(id)
        if not address:
            return False
        address.delete()
        logger.info("address.soft_deleted", address_id=str(id))
        return True
