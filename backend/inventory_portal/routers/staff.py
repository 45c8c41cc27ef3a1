from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from inventory_portal.clock import current_time
from inventory_portal.database import get_db
from inventory_portal.middleware.rbac import require_ojt_or_admin
from inventory_portal.models.user import User
from inventory_portal.schemas.common import dump, envelope
from inventory_portal.schemas.inventory import InventoryItemCreate, InventoryItemResponse
from inventory_portal.schemas.user import UserResponse
from inventory_portal.services import inventory_query

router = APIRouter(prefix="/api/ojt", tags=["OJT"])


@router.post("/inventory", status_code=201)
async def submit_item(
    payload: InventoryItemCreate,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(current_time),
    current_user: User = Depends(require_ojt_or_admin()),
):
    """Trainee submission; stamped with the submitting username."""
    item = await inventory_query.create_item(db, payload, current_user.username, now)
    return envelope(
        {"item": dump(InventoryItemResponse.model_validate(item))},
        "Inventory item created successfully",
    )


@router.get("/profile")
async def profile(current_user: User = Depends(require_ojt_or_admin())):
    return envelope({"user": dump(UserResponse.model_validate(current_user))})
