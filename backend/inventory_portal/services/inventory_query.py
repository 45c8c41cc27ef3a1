"""
Inventory query service: paginated listing, single-item lookup and writes.

Listing turns the request's filter/search/sort parameters into one SELECT
and one COUNT over the same predicate, then windows the SELECT with
offset/limit. Pages are not snapshot-consistent under concurrent writes.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_portal.exceptions import (
    DuplicateKeyError, InvalidQueryError, MalformedIdError, NotFoundError, conflicting_field,
)
from inventory_portal.models.inventory_item import InventoryItem
from inventory_portal.schemas.common import Pagination
from inventory_portal.schemas.inventory import InventoryItemCreate, InventoryItemUpdate

logger = logging.getLogger(__name__)

ITEM_LABEL = "Inventory item"
ITEM_ID_LABEL = "inventory item"

# sortBy value on the wire -> column
SORT_FIELDS = {
    "createdAt": InventoryItem.created_at,
    "updatedAt": InventoryItem.updated_at,
    "computerNameOrId": InventoryItem.computer_name_or_id,
    "computerModel": InventoryItem.computer_model,
    "building": InventoryItem.building,
    "floor": InventoryItem.floor,
    "roomNameOrNumber": InventoryItem.room_name_or_number,
    "serialNumber": InventoryItem.serial_number,
    "status": InventoryItem.status,
    "purchaseDate": InventoryItem.purchase_date,
    "warrantyExpiry": InventoryItem.warranty_expiry,
}

SEARCH_COLUMNS = (
    InventoryItem.computer_name_or_id,
    InventoryItem.computer_model,
    InventoryItem.building,
    InventoryItem.room_name_or_number,
    InventoryItem.serial_number,
)


@dataclass
class InventoryQuery:
    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    building: Optional[str] = None
    status: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filters(query: InventoryQuery) -> list:
    """Predicate list, ANDed together. Search is an OR across SEARCH_COLUMNS."""
    filters = []
    if query.search:
        pattern = f"%{_escape_like(query.search)}%"
        filters.append(or_(*(col.ilike(pattern, escape="\\") for col in SEARCH_COLUMNS)))
    if query.building:
        filters.append(InventoryItem.building == query.building)
    if query.status:
        filters.append(InventoryItem.status == query.status)
    return filters


def sort_clause(sort_by: str, sort_order: str) -> list:
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise InvalidQueryError(
            f"Invalid sortBy field '{sort_by}'",
            errors=[f"sortBy must be one of: {', '.join(SORT_FIELDS)}"],
        )
    if sort_order not in ("asc", "desc"):
        raise InvalidQueryError(
            f"Invalid sortOrder '{sort_order}'",
            errors=["sortOrder must be 'asc' or 'desc'"],
        )
    if sort_order == "asc":
        return [column.asc(), InventoryItem.id.asc()]
    return [column.desc(), InventoryItem.id.desc()]


def paginate(total: int, page: int, limit: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=limit,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


async def list_items(db: AsyncSession, query: InventoryQuery) -> tuple[List[InventoryItem], Pagination]:
    order_by = sort_clause(query.sort_by, query.sort_order)
    filters = build_filters(query)
    where = and_(*filters) if filters else None

    stmt = select(InventoryItem)
    count_stmt = select(func.count(InventoryItem.id))
    if where is not None:
        stmt = stmt.where(where)
        count_stmt = count_stmt.where(where)

    skip = (query.page - 1) * query.limit
    result = await db.execute(stmt.order_by(*order_by).offset(skip).limit(query.limit))
    items = list(result.scalars().all())
    total = (await db.execute(count_stmt)).scalar() or 0
    return items, paginate(total, query.page, query.limit)


def parse_item_id(item_id: str) -> UUID:
    try:
        return UUID(str(item_id))
    except ValueError:
        raise MalformedIdError(ITEM_ID_LABEL)


async def get_item(db: AsyncSession, item_id: str) -> InventoryItem:
    uid = parse_item_id(item_id)
    result = await db.execute(select(InventoryItem).where(InventoryItem.id == uid))
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError(ITEM_LABEL)
    return item


async def _serial_taken(db: AsyncSession, serial: Optional[str], exclude_id: Optional[UUID] = None) -> bool:
    if not serial:
        return False
    stmt = select(InventoryItem.id).where(InventoryItem.serial_number == serial)
    if exclude_id is not None:
        stmt = stmt.where(InventoryItem.id != exclude_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        field = conflicting_field(str(e.orig))
        if field:
            raise DuplicateKeyError(field) from e
        raise


async def create_item(
    db: AsyncSession, payload: InventoryItemCreate, submitted_by: str, now: datetime
) -> InventoryItem:
    if await _serial_taken(db, payload.serial_number):
        raise DuplicateKeyError("serial_number")

    item = InventoryItem(**payload.model_dump(), submitted_by=submitted_by)
    item.created_at = now
    item.updated_at = now
    db.add(item)
    await _commit(db)
    await db.refresh(item)
    logger.info("Inventory item %s created by %s", item.id, submitted_by)
    return item


async def update_item(
    db: AsyncSession, item_id: str, payload: InventoryItemUpdate, now: datetime
) -> InventoryItem:
    item = await get_item(db, item_id)
    update_data = payload.model_dump(exclude_unset=True)
    # Explicit null on a required column leaves the stored value alone
    for key in ("building", "floor", "room_name_or_number", "status"):
        if key in update_data and update_data[key] is None:
            del update_data[key]

    if "serial_number" in update_data and await _serial_taken(db, update_data["serial_number"], item.id):
        raise DuplicateKeyError("serial_number")

    for key, value in update_data.items():
        setattr(item, key, value)
    item.updated_at = now
    await _commit(db)
    await db.refresh(item)
    logger.info("Inventory item %s updated: %s", item.id, sorted(update_data))
    return item


async def delete_item(db: AsyncSession, item_id: str) -> None:
    item = await get_item(db, item_id)
    await db.delete(item)
    await db.commit()
    logger.info("Inventory item %s deleted", item_id)


async def inventory_stats_summary(db: AsyncSession, now: datetime) -> dict:
    """Headline counts shown on the inventory page."""
    total = (await db.execute(select(func.count(InventoryItem.id)))).scalar() or 0
    status_rows = await db.execute(
        select(InventoryItem.status, func.count(InventoryItem.id)).group_by(InventoryItem.status)
    )
    recent = (await db.execute(
        select(func.count(InventoryItem.id)).where(InventoryItem.created_at >= now - timedelta(days=7))
    )).scalar() or 0
    expiring = (await db.execute(
        select(func.count(InventoryItem.id)).where(
            InventoryItem.warranty_expiry >= now,
            InventoryItem.warranty_expiry <= now + timedelta(days=30),
        )
    )).scalar() or 0
    return {
        "totalItems": total,
        "statusStats": [{"_id": status, "count": count} for status, count in status_rows.all()],
        "recentItems": recent,
        "expiringWarranties": expiring,
    }


async def recent_activity(db: AsyncSession, limit: int = 10) -> List[InventoryItem]:
    result = await db.execute(
        select(InventoryItem).order_by(InventoryItem.updated_at.desc(), InventoryItem.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
