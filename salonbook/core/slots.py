# salonbook/core/slots.py

import logging
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence

from salonbook.core.blocked import has_full_day_block, resolve_blocked_windows
from salonbook.core.timeline import ServiceTimeline, build_timeline
from salonbook.core.timewindow import (
    TimeWindow,
    format_minutes,
    intersects_any,
    merge,
    parse_time,
    subtract,
    subtract_all,
)
from salonbook.core.working_hours import resolve_working_window
from salonbook.schemas import (
    AppointmentStatus,
    BookedAppointment,
    DaySnapshot,
    SalonTimeSlot,
    ServiceDurationProfile,
    SlotReason,
    TimeSlot,
)

logger = logging.getLogger(__name__)


class DayAvailability(NamedTuple):
    """Resolved state of one stylist-day before any candidate is placed."""

    window: TimeWindow
    blocked: List[TimeWindow]
    busy: List[TimeWindow]
    free: List[TimeWindow]


def appointment_occupancy(appointment: BookedAppointment) -> List[TimeWindow]:
    timeline = build_timeline(parse_time(appointment.start_time), appointment.services)
    return timeline.occupied


def occupied_intervals(
    appointments: Iterable[BookedAppointment],
    exclude_appointment_id: Optional[int] = None,
) -> List[TimeWindow]:
    """Occupied time of every non-cancelled appointment; gaps stay free."""
    busy = []
    for appointment in appointments:
        if appointment.status == AppointmentStatus.cancelled:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        busy.extend(appointment_occupancy(appointment))
    return merge(busy)


def resolve_day(
    snapshot: DaySnapshot,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[DayAvailability]:
    """
    Working window minus blocks minus occupancy.

    None when the stylist is closed or a full-day block applies. Partial
    blocks that happen to cover the whole window still give a day, so
    its grid is emitted with every candidate blocked.
    """
    window = resolve_working_window(snapshot.date, snapshot.working_hours, snapshot.salon_hours)
    if window is None:
        return None
    if has_full_day_block(snapshot.date, snapshot.blocked):
        logger.debug("Stylist %s blocked all day on %s", snapshot.stylist_id, snapshot.date)
        return None

    blocked = resolve_blocked_windows(snapshot.date, window, snapshot.blocked)
    open_windows = subtract(window, blocked)

    busy = occupied_intervals(snapshot.appointments, exclude_appointment_id)
    free = subtract_all(open_windows, busy)
    return DayAvailability(window=window, blocked=blocked, busy=busy, free=free)


def check_candidate(
    day: DayAvailability,
    timeline: ServiceTimeline,
    not_before: Optional[int] = None,
) -> Optional[SlotReason]:
    """Why the candidate cannot be placed, or None when it fits."""
    if not_before is not None and timeline.start < not_before:
        return SlotReason.past
    if not day.window.contains(timeline.span):
        return SlotReason.outside_hours
    if any(intersects_any(piece, day.blocked) for piece in timeline.occupied):
        return SlotReason.blocked
    if any(intersects_any(piece, day.busy) for piece in timeline.occupied):
        return SlotReason.stylist_busy
    return None


def candidate_starts(window: TimeWindow, granularity: int) -> List[int]:
    if granularity <= 0:
        raise ValueError("granularity must be positive")
    return list(range(window.start, window.end, granularity))


def generate_slots(
    snapshot: DaySnapshot,
    services: Sequence[ServiceDurationProfile],
    granularity: int = 30,
    not_before: Optional[int] = None,
) -> List[TimeSlot]:
    """
    Full grid of start times for the requested services on one stylist-day.

    Every candidate in [window.start, window.end) is emitted in ascending
    order, unavailable ones included with a reason. Closed or fully
    blocked days give an empty list.
    """
    day = resolve_day(snapshot)
    if day is None:
        return []

    slots = []
    for start in candidate_starts(day.window, granularity):
        timeline = build_timeline(start, services)
        reason = check_candidate(day, timeline, not_before)
        slots.append(TimeSlot(time=format_minutes(start), available=reason is None, reason=reason))

    logger.debug(
        "Stylist %s on %s: %d/%d slots available at %d min",
        snapshot.stylist_id,
        snapshot.date,
        sum(1 for s in slots if s.available),
        len(slots),
        granularity,
    )
    return slots


def combine_stylist_slots(per_stylist: Mapping[int, Sequence[TimeSlot]]) -> List[SalonTimeSlot]:
    """
    Salon-wide grid: a start time is available when any stylist has it.

    Stylists working different hours contribute their own grid times; the
    result is the sorted union with the ids of every stylist free at each.
    """
    free_by_time: Dict[int, List[int]] = {}
    for stylist_id in sorted(per_stylist):
        for slot in per_stylist[stylist_id]:
            minute = parse_time(slot.time)
            free = free_by_time.setdefault(minute, [])
            if slot.available:
                free.append(stylist_id)

    return [
        SalonTimeSlot(time=format_minutes(minute), available=bool(ids), stylist_ids=ids)
        for minute, ids in sorted(free_by_time.items())
    ]
