from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from inventory_portal.clock import current_time
from inventory_portal.config import settings
from inventory_portal.database import get_db
from inventory_portal.middleware.rbac import get_current_user, require_admin
from inventory_portal.models.user import User
from inventory_portal.schemas.common import dump, envelope
from inventory_portal.schemas.inventory import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse, InventoryPage,
)
from inventory_portal.services import inventory_query
from inventory_portal.services.inventory_query import InventoryQuery

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])


def item_payload(item) -> dict:
    return {"item": dump(InventoryItemResponse.model_validate(item))}


@router.get("")
async def list_items(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    search: Optional[str] = None,
    building: Optional[str] = None,
    status: Optional[str] = None,
    sortBy: str = "createdAt",
    sortOrder: str = "desc",
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = InventoryQuery(
        page=page,
        limit=min(limit, settings.MAX_PAGE_SIZE),
        search=search or None,
        building=building or None,
        status=status or None,
        sort_by=sortBy,
        sort_order=sortOrder,
    )
    items, pagination = await inventory_query.list_items(db, query)
    result = InventoryPage(
        items=[InventoryItemResponse.model_validate(i) for i in items],
        pagination=pagination,
    )
    return envelope(dump(result))


@router.get("/stats/summary")
async def stats_summary(
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    return envelope(await inventory_query.inventory_stats_summary(db, now))


@router.get("/recent-activity")
async def recent_activity(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    items = await inventory_query.recent_activity(db, limit)
    recent = [
        dump(InventoryItemResponse.model_validate(i)) for i in items
    ]
    return envelope({"recentItems": recent})


@router.get("/{item_id}")
async def get_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    item = await inventory_query.get_item(db, item_id)
    return envelope(item_payload(item))


@router.post("", status_code=201)
async def create_item(
    payload: InventoryItemCreate,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(current_time),
    current_user: User = Depends(require_admin()),
):
    item = await inventory_query.create_item(db, payload, current_user.username, now)
    return envelope(item_payload(item), "Inventory item created successfully")


@router.put("/{item_id}")
async def update_item(
    item_id: str,
    payload: InventoryItemUpdate,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(current_time),
    _: User = Depends(require_admin()),
):
    item = await inventory_query.update_item(db, item_id, payload, now)
    return envelope(item_payload(item), "Inventory item updated successfully")


@router.delete("/{item_id}")
async def delete_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin()),
):
    await inventory_query.delete_item(db, item_id)
    return envelope(message="Inventory item deleted successfully")
