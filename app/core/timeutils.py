# app/core/timeutils.py
from datetime import date, datetime, timedelta, timezone

from app.core.config import get_settings

settings = get_settings()

LOCAL_TZ = timezone(timedelta(hours=settings.LOCAL_UTC_OFFSET_HOURS))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    return datetime.now(LOCAL_TZ)


def local_today() -> date:
    return local_now().date()


def as_utc(dt: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    Columns come back naive from SQLite and from Postgres `timestamp`
    columns; every value this app writes is UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime) -> datetime:
    return as_utc(dt).astimezone(LOCAL_TZ)


def local_day_start_utc(day: date | None = None) -> datetime:
    """UTC instant at which the given local day (default today) begins."""
    day = day or local_today()
    return datetime(day.year, day.month, day.day, tzinfo=LOCAL_TZ).astimezone(
        timezone.utc
    )
