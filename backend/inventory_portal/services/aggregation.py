"""
Aggregations over the whole inventory for dashboard widgets and reports.

Every function takes ``now`` explicitly so time-relative buckets (warranty,
age, alerts, trailing months) are deterministic for a given clock value.
Date buckets are half-open: inclusive lower bound, exclusive upper bound.

Combined payloads (dashboard stats, report data, analytics) issue their
sub-queries concurrently, each on its own session from the factory. A
failure in any sub-query fails the whole payload.
"""
import asyncio
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_portal.clock import as_utc, shift_months, shift_years
from inventory_portal.models.inventory_item import InventoryItem, ItemStatus, STATUS_VALUES
from inventory_portal.models.user import User

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

SEVERITY_RANK = {"high": 3, "medium": 2, "low": 1}

WARRANTY_ALERT_DAYS = 30
WARRANTY_HIGH_DAYS = 7
MAINTENANCE_HIGH_DAYS = 7
RECENT_DAYS = 7
DAY_SECONDS = 86400


async def _in_session(factory: async_sessionmaker, fn: Callable[..., Awaitable[Any]], *args) -> Any:
    async with factory() as session:
        return await fn(session, *args)


async def _gather(factory: async_sessionmaker, *calls: Tuple) -> list:
    """Run each call on its own session; the first failure cancels the rest and is re-raised."""
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_in_session(factory, fn, *args)) for fn, *args in calls]
    except ExceptionGroup as eg:
        raise eg.exceptions[0]
    return [task.result() for task in tasks]


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------

async def total_items(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(InventoryItem.id)))).scalar() or 0


async def active_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(User.id)).where(User.is_active == True))).scalar() or 0  # noqa: E712


async def count_between(
    db: AsyncSession, column, lower: Optional[datetime] = None, upper: Optional[datetime] = None,
) -> int:
    """Count rows with ``lower <= column < upper``; either bound may be open."""
    stmt = select(func.count(InventoryItem.id)).where(column.isnot(None))
    if lower is not None:
        stmt = stmt.where(column >= lower)
    if upper is not None:
        stmt = stmt.where(column < upper)
    return (await db.execute(stmt)).scalar() or 0


async def expiring_warranties(db: AsyncSession, now: datetime, days: int = WARRANTY_ALERT_DAYS) -> int:
    """Warranties expiring between now and now+days, both ends inclusive."""
    stmt = select(func.count(InventoryItem.id)).where(
        InventoryItem.warranty_expiry >= now,
        InventoryItem.warranty_expiry <= now + timedelta(days=days),
    )
    return (await db.execute(stmt)).scalar() or 0


async def recently_added(db: AsyncSession, now: datetime, days: int = RECENT_DAYS) -> int:
    return await count_between(db, InventoryItem.created_at, lower=now - timedelta(days=days))


def zero_filled_status(rows) -> Dict[str, int]:
    counts = {status: 0 for status in STATUS_VALUES}
    for status, count in rows:
        if status in counts:
            counts[status] = count
        else:
            logger.warning("Unexpected status value in store: %r", status)
    return counts


async def status_counts(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(
        select(InventoryItem.status, func.count(InventoryItem.id)).group_by(InventoryItem.status)
    )
    return zero_filled_status(result.all())


async def building_counts(db: AsyncSession) -> List[Tuple[str, int]]:
    count = func.count(InventoryItem.id).label("count")
    result = await db.execute(
        select(InventoryItem.building, count)
        .group_by(InventoryItem.building)
        .order_by(count.desc(), InventoryItem.building.asc())
    )
    return [(building, n) for building, n in result.all()]


async def floor_counts(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(
        select(InventoryItem.building, InventoryItem.floor, func.count(InventoryItem.id))
        .group_by(InventoryItem.building, InventoryItem.floor)
        .order_by(InventoryItem.building.asc(), InventoryItem.floor.asc())
    )
    return {f"{building} - Floor {floor}": n for building, floor, n in result.all()}


async def status_building_breakdown(db: AsyncSession) -> List[dict]:
    result = await db.execute(
        select(InventoryItem.status, InventoryItem.building, func.count(InventoryItem.id))
        .group_by(InventoryItem.status, InventoryItem.building)
        .order_by(InventoryItem.status.asc(), InventoryItem.building.asc())
    )
    grouped: Dict[str, dict] = {}
    for status, building, n in result.all():
        entry = grouped.setdefault(status, {"_id": status, "buildings": [], "totalCount": 0})
        entry["buildings"].append({"building": building, "count": n})
        entry["totalCount"] += n
    return list(grouped.values())


async def monthly_creations(db: AsyncSession, now: datetime) -> List[dict]:
    """Items created per calendar month over the trailing twelve months."""
    since = shift_months(now, -12)
    year = extract("year", InventoryItem.created_at).label("year")
    month = extract("month", InventoryItem.created_at).label("month")
    result = await db.execute(
        select(year, month, func.count(InventoryItem.id))
        .where(InventoryItem.created_at >= since)
        .group_by(year, month)
        .order_by(year.asc(), month.asc())
    )
    return [
        {"year": int(y), "month": MONTH_NAMES[int(m) - 1], "count": n}
        for y, m, n in result.all()
    ]


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------

async def warranty_buckets(db: AsyncSession, now: datetime) -> Dict[str, int]:
    col = InventoryItem.warranty_expiry
    in_30 = now + timedelta(days=30)
    in_60 = now + timedelta(days=60)
    return {
        "expired": await count_between(db, col, upper=now),
        "expiringSoon": await count_between(db, col, lower=now, upper=in_30),
        "expiringNext30Days": await count_between(db, col, lower=in_30, upper=in_60),
        "validWarranty": await count_between(db, col, lower=in_60),
    }


async def age_buckets(db: AsyncSession, now: datetime) -> Dict[str, int]:
    col = InventoryItem.purchase_date
    one, two, three = (shift_years(now, -n) for n in (1, 2, 3))
    return {
        "lessThan1Year": await count_between(db, col, lower=one),
        "oneToTwoYears": await count_between(db, col, lower=two, upper=one),
        "twoToThreeYears": await count_between(db, col, lower=three, upper=two),
        "moreThanThreeYears": await count_between(db, col, upper=three),
    }


# ---------------------------------------------------------------------------
# Cost
# ---------------------------------------------------------------------------

def to_number(raw: Optional[str]) -> Optional[float]:
    """Coerce a free-text cost; None when missing or not a finite number."""
    if raw is None:
        return None
    text = str(raw).strip().replace(",", "")
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def summarize_costs(raw_costs) -> dict:
    values = [v for v in (to_number(c) for c in raw_costs) if v is not None]
    if not values:
        return {
            "totalInventoryValue": 0,
            "averageItemCost": None,
            "highestCost": None,
            "lowestCost": None,
            "pricedItems": 0,
        }
    return {
        "totalInventoryValue": sum(values),
        "averageItemCost": sum(values) / len(values),
        "highestCost": max(values),
        "lowestCost": min(values),
        "pricedItems": len(values),
    }


async def cost_analysis(db: AsyncSession) -> dict:
    result = await db.execute(select(InventoryItem.cost).where(InventoryItem.cost.isnot(None)))
    return summarize_costs(result.scalars().all())


async def category_analytics(db: AsyncSession) -> List[dict]:
    result = await db.execute(select(InventoryItem.category, InventoryItem.cost))
    groups: Dict[Optional[str], List[Optional[str]]] = {}
    for category, cost in result.all():
        groups.setdefault(category, []).append(cost)
    rows = []
    for category, costs in groups.items():
        summary = summarize_costs(costs)
        rows.append({
            "_id": category,
            "count": len(costs),
            "totalCost": summary["totalInventoryValue"],
            "averageCost": summary["averageItemCost"],
        })
    rows.sort(key=lambda r: (-r["count"], r["_id"] or ""))
    return rows


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

def warranty_severity(days_until_expiry: int) -> str:
    return "high" if days_until_expiry <= WARRANTY_HIGH_DAYS else "medium"


def maintenance_severity(days_in_maintenance: int) -> str:
    return "high" if days_in_maintenance > MAINTENANCE_HIGH_DAYS else "low"


def sort_alerts(alerts: List[dict]) -> List[dict]:
    """Highest severity first; sorted() is stable so ties keep their order."""
    return sorted(alerts, key=lambda a: -SEVERITY_RANK[a["severity"]])


def _alert_item(item: InventoryItem) -> dict:
    return {
        "id": str(item.id),
        "name": item.computer_name_or_id,
        "model": item.computer_model,
        "location": f"{item.building} - {item.room_name_or_number}",
    }


def warranty_alert(item: InventoryItem, now: datetime) -> dict:
    seconds = (as_utc(item.warranty_expiry) - now).total_seconds()
    days = math.ceil(seconds / DAY_SECONDS)
    return {
        "type": "warranty",
        "severity": warranty_severity(days),
        "title": "Warranty Expiring Soon",
        "message": f"{item.computer_name_or_id or item.computer_model} warranty expires in {days} days",
        "item": _alert_item(item),
        "daysUntilExpiry": days,
    }


def maintenance_alert(item: InventoryItem, now: datetime) -> dict:
    seconds = (now - as_utc(item.updated_at)).total_seconds()
    days = math.floor(seconds / DAY_SECONDS)
    return {
        "type": "maintenance",
        "severity": maintenance_severity(days),
        "title": "Item in Maintenance",
        "message": f"{item.computer_name_or_id or item.computer_model} has been in maintenance for {days} days",
        "item": _alert_item(item),
        "daysSinceMaintenance": days,
    }


async def build_alerts(db: AsyncSession, now: datetime) -> List[dict]:
    warranty_rows = await db.execute(
        select(InventoryItem)
        .where(
            InventoryItem.warranty_expiry >= now,
            InventoryItem.warranty_expiry <= now + timedelta(days=WARRANTY_ALERT_DAYS),
        )
        .order_by(InventoryItem.warranty_expiry.asc(), InventoryItem.id.asc())
    )
    maintenance_rows = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.status == ItemStatus.maintenance.value)
        .order_by(InventoryItem.updated_at.asc(), InventoryItem.id.asc())
    )
    alerts = [warranty_alert(item, now) for item in warranty_rows.scalars().all()]
    alerts += [maintenance_alert(item, now) for item in maintenance_rows.scalars().all()]
    return sort_alerts(alerts)


# ---------------------------------------------------------------------------
# Listings used by dashboards and exports
# ---------------------------------------------------------------------------

async def recently_updated(db: AsyncSession, limit: int) -> List[InventoryItem]:
    result = await db.execute(
        select(InventoryItem).order_by(InventoryItem.updated_at.desc(), InventoryItem.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def recently_created(db: AsyncSession, limit: Optional[int] = None) -> List[InventoryItem]:
    stmt = select(InventoryItem).order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def activity_entry(item: InventoryItem) -> dict:
    is_new = as_utc(item.created_at) == as_utc(item.updated_at)
    return {
        "id": str(item.id),
        "type": "created" if is_new else "updated",
        "action": "Added new item" if is_new else "Updated item",
        "item": {
            "name": item.computer_name_or_id or "Unnamed Device",
            "model": item.computer_model,
            "location": item.location,
            "status": item.status,
        },
        "timestamp": as_utc(item.updated_at).isoformat(),
    }


# ---------------------------------------------------------------------------
# Combined payloads
# ---------------------------------------------------------------------------

async def dashboard_stats(factory: async_sessionmaker, now: datetime) -> dict:
    total, users, statuses, recent, expiring, buildings = await _gather(
        factory,
        (total_items,),
        (active_users,),
        (status_counts,),
        (recently_added, now),
        (expiring_warranties, now),
        (building_counts,),
    )
    return {
        "overview": {
            "totalItems": total,
            "activeUsers": users,
            "recentlyAdded": recent,
            "expiringWarranties": expiring,
        },
        "statusStats": statuses,
        "itemsByBuilding": [{"_id": b, "count": n} for b, n in buildings],
    }


async def report_data(factory: async_sessionmaker, now: datetime) -> dict:
    total, statuses, buildings, floors, expiring, months, breakdown = await _gather(
        factory,
        (total_items,),
        (status_counts,),
        (building_counts,),
        (floor_counts,),
        (expiring_warranties, now),
        (monthly_creations, now),
        (status_building_breakdown,),
    )
    return {
        "totalItems": total,
        "itemsByStatus": statuses,
        "itemsByBuilding": {b: n for b, n in buildings},
        "itemsByFloor": floors,
        "expiringWarranties": expiring,
        "itemsByMonth": months,
        "statusBreakdown": breakdown,
    }


async def report_summary(db: AsyncSession, now: datetime) -> dict:
    statuses = await status_counts(db)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    buildings = await building_counts(db)
    top_name, top_count = buildings[0] if buildings else ("N/A", 0)
    return {
        "totalItems": sum(statuses.values()),
        "availableItems": statuses[ItemStatus.available.value],
        "inUseItems": statuses[ItemStatus.in_use.value],
        "maintenanceItems": statuses[ItemStatus.maintenance.value],
        "addedThisMonth": await count_between(db, InventoryItem.created_at, lower=start_of_month),
        "updatedThisWeek": await count_between(db, InventoryItem.updated_at, lower=now - timedelta(days=7)),
        "expiringIn30Days": await expiring_warranties(db, now, 30),
        "expiringIn7Days": await expiring_warranties(db, now, 7),
        "topBuilding": {"name": top_name, "count": top_count},
    }


async def analytics(factory: async_sessionmaker, now: datetime) -> dict:
    categories, warranty, ages, costs = await _gather(
        factory,
        (category_analytics,),
        (warranty_buckets, now),
        (age_buckets, now),
        (cost_analysis,),
    )
    return {
        "categoryAnalytics": categories,
        "warrantyAnalytics": warranty,
        "ageDistribution": ages,
        "costAnalysis": costs,
    }


async def export_snapshot(factory: async_sessionmaker, now: datetime) -> dict:
    """Data behind the PDF export."""
    total, statuses, buildings, recent = await _gather(
        factory,
        (total_items,),
        (status_counts,),
        (building_counts,),
        (recently_created, 10),
    )
    return {
        "summary": {"totalItems": total, "generatedAt": now.isoformat()},
        "statusBreakdown": statuses,
        "buildingBreakdown": buildings,
        "recentItems": recent,
    }
