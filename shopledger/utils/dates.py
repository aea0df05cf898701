from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from shopledger.core.config import settings


def now_local() -> datetime:
    """Current wall-clock time in the shop's timezone, stored naive."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def business_datetime(day: Optional[date]) -> datetime:
    """
    A date picked on the form keeps the current time of day,
    so several sales on the same back-dated day still sort in entry order.
    """
    now = now_local()
    if day is None:
        return now
    return datetime.combine(day, now.time())


def day_bounds(start: Optional[date], end: Optional[date]):
    start_dt = datetime.combine(start, time.min) if start else None
    end_dt = datetime.combine(end, time.max) if end else None
    return start_dt, end_dt
