"""
Reports API: aggregate JSON payloads plus CSV and PDF exports of the inventory.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_portal.clock import current_time
from inventory_portal.database import get_db, get_session_factory
from inventory_portal.middleware.rbac import get_current_user
from inventory_portal.models.user import User
from inventory_portal.schemas.common import envelope
from inventory_portal.services import aggregation
from inventory_portal.services.report_export import render_csv, render_pdf

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _attachment(content, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/data")
async def report_data(
    factory: async_sessionmaker = Depends(get_session_factory),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    return envelope(await aggregation.report_data(factory, now))


@router.get("/summary")
async def report_summary(
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    return envelope(await aggregation.report_summary(db, now))


@router.get("/analytics")
async def report_analytics(
    factory: async_sessionmaker = Depends(get_session_factory),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    return envelope(await aggregation.analytics(factory, now))


@router.get("/export/csv")
async def export_csv(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    """Export all items, newest first, as CSV."""
    items = await aggregation.recently_created(db)
    return _attachment(render_csv(items), "text/csv", "inventory_report.csv")


@router.get("/export/pdf")
async def export_pdf(
    factory: async_sessionmaker = Depends(get_session_factory),
    now: datetime = Depends(current_time),
    _: User = Depends(get_current_user),
):
    snapshot = await aggregation.export_snapshot(factory, now)
    return _attachment(render_pdf(snapshot, now), "application/pdf", "inventory_report.pdf")
