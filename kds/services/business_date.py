"""
Business Date Resolver

Maps an instant to the calendar day ("YYYY-MM-DD") an order is attributed
to for reporting. The business date is taken in the process-local time
zone unless an explicit zone is passed (see Settings.business_timezone).
"""

import time
from datetime import datetime, tzinfo
from typing import Optional, Union

Instant = Union[int, float, datetime]


def now_ms() -> int:
    """Current instant as epoch milliseconds."""
    return time.time_ns() // 1_000_000


def to_datetime(instant: Instant, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds (or a datetime) to an aware/local datetime in ``tz``."""
    if isinstance(instant, datetime):
        if tz is None:
            return instant if instant.tzinfo is None else instant.astimezone()
        if instant.tzinfo is None:
            instant = instant.astimezone()
        return instant.astimezone(tz)
    return datetime.fromtimestamp(instant / 1000, tz=tz)


def business_date(instant: Optional[Instant] = None, tz: Optional[tzinfo] = None) -> str:
    """
    Format the calendar date of ``instant`` as YYYY-MM-DD.

    Args:
        instant: Epoch milliseconds or datetime; defaults to now
        tz: Time zone to read the calendar in; None means process local

    Returns:
        Zero-padded business date string

    Example:
        >>> business_date(datetime(2024, 3, 5, 23, 59))
        '2024-03-05'
    """
    if instant is None:
        instant = now_ms()
    dt = to_datetime(instant, tz)
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
