"""Time helpers.

Aggregations and alerts are relative to "now"; handlers receive it through
the ``current_time`` dependency instead of reading the wall clock directly.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def shift_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    if month == 12:
        last_day = 31
    else:
        last_day = (datetime(year, month + 1, 1) - datetime(year, month, 1)).days
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def shift_years(value: datetime, years: int) -> datetime:
    return shift_months(value, years * 12)


async def current_time() -> datetime:
    return utcnow()
