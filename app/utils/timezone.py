# FILE: app/utils/timezone.py
from __future__ import annotations

from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    """
    Returns a *naive* datetime representing UTC time.
    All DateTime columns are naive, so keep comparisons naive too.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(d: date | datetime) -> datetime:
    if isinstance(d, datetime):
        d = as_naive_utc(d).date()
    return datetime.combine(d, time.min)


def end_of_day(d: date | datetime) -> datetime:
    if isinstance(d, datetime):
        d = as_naive_utc(d).date()
    return datetime.combine(d, time.max)
