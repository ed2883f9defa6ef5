"""Date manipulation utilities"""

from datetime import datetime, timezone
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def add_months(from_date: datetime, months: int) -> datetime:
    """Add calendar months, clamping to the last day of shorter months"""
    return from_date + relativedelta(months=months)


def months_between(start: datetime, end: datetime) -> int:
    """
    Whole calendar months elapsed from start to end.

    Jan 15 -> Apr 15 is 3 months; Jan 15 -> Apr 14 is 2.
    Returns a negative count when end precedes start.
    """
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from start to end"""
    return (end - start).days
