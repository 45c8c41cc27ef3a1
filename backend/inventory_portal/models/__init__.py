from inventory_portal.models.user import User, RoleEnum
from inventory_portal.models.inventory_item import InventoryItem, ItemStatus, STATUS_VALUES

__all__ = [
    "User", "RoleEnum",
    "InventoryItem", "ItemStatus", "STATUS_VALUES",
]
