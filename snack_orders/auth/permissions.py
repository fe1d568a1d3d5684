"""Role-based access rules.

A user may hold several roles at once. Access is decided from a ``RoleSet``
snapshot and a ``Capability`` without touching HTTP or the database, so the
rules can be checked in isolation.
"""

import enum
from dataclasses import dataclass


class Capability(str, enum.Enum):
    VIEW_OWN_ORDERS = "view_own_orders"
    PLACE_ORDER = "place_order"
    VIEW_ALL_ORDERS = "view_all_orders"
    VIEW_CLASS_ORDERS = "view_class_orders"
    UPDATE_ORDER_STATUS = "update_order_status"
    MANAGE_PRODUCTS = "manage_products"
    MANAGE_USERS = "manage_users"
    MANAGE_CLASSES = "manage_classes"


@dataclass(frozen=True)
class RoleSet:
    is_admin: bool = False
    is_user_admin: bool = False
    is_representative: bool = False
    class_room: str = ""

    @classmethod
    def from_user(cls, user) -> "RoleSet":
        return cls(
            is_admin=bool(user.is_admin),
            is_user_admin=bool(user.is_user_admin),
            is_representative=bool(user.is_representative),
            class_room=user.class_room or "",
        )

    @property
    def is_order_manager(self) -> bool:
        return self.is_admin or self.is_representative


def is_allowed(roles: RoleSet, capability: Capability) -> bool:
    if capability in (Capability.VIEW_OWN_ORDERS, Capability.PLACE_ORDER):
        return True
    if capability in (
        Capability.VIEW_ALL_ORDERS,
        Capability.VIEW_CLASS_ORDERS,
        Capability.UPDATE_ORDER_STATUS,
    ):
        return roles.is_order_manager
    if capability == Capability.MANAGE_PRODUCTS:
        return roles.is_admin
    if capability in (Capability.MANAGE_USERS, Capability.MANAGE_CLASSES):
        return roles.is_user_admin
    return False


def can_access_class(roles: RoleSet, class_room: str | None) -> bool:
    """Admins see every class; representatives only their own."""
    if roles.is_admin:
        return True
    if not roles.is_representative or not class_room:
        return False
    own_class = roles.class_room.strip().lower()
    return bool(own_class) and own_class == class_room.strip().lower()
