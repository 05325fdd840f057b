"""Address book exceptions."""

from __future__ import annotations

from shared.domain.exceptions import NotFoundError


class AddressNotFound(NotFoundError):
    """The address does not exist, was deleted, or belongs to someone else."""
