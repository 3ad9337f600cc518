# salonbook/core/working_hours.py

import logging
from datetime import date
from typing import Mapping, Optional

from salonbook.core.timewindow import TimeWindow, parse_time
from salonbook.schemas import WorkingDay, weekday_name

logger = logging.getLogger(__name__)


def resolve_working_day(
    target_date: date,
    stylist_hours: Mapping[str, WorkingDay],
    salon_hours: Mapping[str, WorkingDay],
) -> Optional[WorkingDay]:
    """Stylist override for the weekday wins, then the salon default."""
    weekday = weekday_name(target_date)
    if weekday in stylist_hours:
        return stylist_hours[weekday]
    return salon_hours.get(weekday)


def resolve_working_window(
    target_date: date,
    stylist_hours: Mapping[str, WorkingDay],
    salon_hours: Mapping[str, WorkingDay],
) -> Optional[TimeWindow]:
    """
    Working window for a date, or None when the stylist is closed.

    A stylist that overrides a weekday as not working is closed even if
    the salon is open that day.
    """
    day = resolve_working_day(target_date, stylist_hours, salon_hours)
    if day is None or not day.is_working:
        logger.debug("Closed on %s (%s)", target_date, weekday_name(target_date))
        return None

    window = TimeWindow(parse_time(day.start), parse_time(day.end))
    if window.is_empty():
        return None
    return window
