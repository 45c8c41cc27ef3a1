from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from inventory_portal.clock import current_time
from inventory_portal.database import get_db, get_session_factory
from inventory_portal.middleware.rbac import get_current_user
from inventory_portal.models.user import User
from inventory_portal.schemas.common import envelope
from inventory_portal.services import aggregation

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def dashboard_stats(
    factory: async_sessionmaker = Depends(get_session_factory),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    return envelope(await aggregation.dashboard_stats(factory, now))


@router.get("/recent-activity")
async def recent_activity(
    limit: int = Query(5, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    items = await aggregation.recently_updated(db, limit)
    return envelope({"activities": [aggregation.activity_entry(i) for i in items]})


@router.get("/alerts")
async def alerts(
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    """Warranty and maintenance alerts, highest severity first."""
    return envelope({"alerts": await aggregation.build_alerts(db, now)})
