from inventory_portal.schemas.auth import Token, TokenData, LoginRequest
from inventory_portal.schemas.user import UserCreate, UserUpdate, UserResponse
from inventory_portal.schemas.inventory import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse, InventoryPage,
)
from inventory_portal.schemas.common import Pagination

__all__ = [
    "Token", "TokenData", "LoginRequest",
    "UserCreate", "UserUpdate", "UserResponse",
    "InventoryItemCreate", "InventoryItemUpdate", "InventoryItemResponse", "InventoryPage",
    "Pagination",
]
