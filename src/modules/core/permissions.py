"""Object-ownership checks shared by the cart, order and payment views.

Identity is trusted as-is from the authenticated request; these helpers
only decide whether that identity may act on a given user's resources.
"""

from __future__ import annotations

from typing import Any


def is_staff(user: Any) -> bool:
    return bool(getattr(user, "is_staff", False))


def can_act_for(user: Any, owner_id: Any) -> bool:
    """Staff may act for anyone; everybody else only for themselves."""
    if is_staff(user):
        return True
    return str(getattr(user, "pk", "")) == str(owner_id)
