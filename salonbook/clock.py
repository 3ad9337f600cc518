# salonbook/clock.py

"""
Conversions between (calendar date, minutes since midnight) in the salon's
timezone and absolute instants. Nothing below the routers sees a datetime.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from salonbook.config import settings
from salonbook.core.timewindow import MINUTES_PER_DAY


def business_now() -> datetime:
    return datetime.now(settings.tz)


def to_instant(day: date, minutes: int) -> datetime:
    """Aware datetime for a business-local (date, minute) pair."""
    return datetime.combine(day, time.min, tzinfo=settings.tz) + timedelta(minutes=minutes)


def not_before_for(day: date, now: datetime, notice_minutes: Optional[int] = None) -> Optional[int]:
    """
    Earliest bookable minute on day given the current instant.

    None for future dates, past the end of the day for dates already gone.
    """
    if notice_minutes is None:
        notice_minutes = settings.MIN_BOOKING_NOTICE_MINUTES

    local_now = now.astimezone(settings.tz)
    earliest = local_now + timedelta(minutes=notice_minutes)

    if earliest.date() < day:
        return None
    if earliest.date() > day:
        return MINUTES_PER_DAY + 1
    minutes = earliest.hour * 60 + earliest.minute
    if earliest.second or earliest.microsecond:
        minutes += 1
    return minutes
