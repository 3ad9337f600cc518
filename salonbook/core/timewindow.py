# salonbook/core/timewindow.py

from datetime import time
from typing import Iterable, List, NamedTuple, Optional, Union

MINUTES_PER_DAY = 24 * 60


class TimeWindow(NamedTuple):
    """Half-open [start, end) interval in minutes since midnight."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.end <= self.start

    def contains(self, other: "TimeWindow") -> bool:
        return self.start <= other.start and other.end <= self.end

    def clip(self, bounds: "TimeWindow") -> Optional["TimeWindow"]:
        clipped = TimeWindow(max(self.start, bounds.start), min(self.end, bounds.end))
        if clipped.is_empty():
            return None
        return clipped

    def __str__(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"


def parse_time(value: Union[str, time, int]) -> int:
    """Turn "HH:MM", a time, or minutes into minutes since midnight."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to minutes")
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, time):
        minutes = value.hour * 60 + value.minute
    elif isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid time of day: {value!r}, expected HH:MM")
        hours, mins = int(parts[0]), int(parts[1])
        if hours > 24 or mins > 59 or (hours == 24 and mins != 0):
            raise ValueError(f"Invalid time of day: {value!r}")
        minutes = hours * 60 + mins
    else:
        raise ValueError(f"Cannot convert {type(value)} to minutes")

    # 24:00 is accepted as the end of a business day
    if not (0 <= minutes <= MINUTES_PER_DAY):
        raise ValueError(f"Time of day out of range: {value!r}")
    return minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_time(minutes: int) -> time:
    if minutes >= MINUTES_PER_DAY:
        return time.max.replace(second=0, microsecond=0)
    return time(minutes // 60, minutes % 60)


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    # touching edges do not overlap
    return a.start < b.end and b.start < a.end


def intersects_any(window: TimeWindow, others: Iterable[TimeWindow]) -> bool:
    return any(overlaps(window, other) for other in others)


def merge(windows: Iterable[TimeWindow]) -> List[TimeWindow]:
    """Sort and join overlapping or adjacent windows, dropping empty ones."""
    ordered = sorted(w for w in windows if not w.is_empty())
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = TimeWindow(last.start, current.end)
        else:
            merged.append(current)
    return merged


def subtract(window: TimeWindow, blocked: Iterable[TimeWindow]) -> List[TimeWindow]:
    """
    Remove every blocked interval from window.

    Returns the remaining free windows in ascending order: none when fully
    covered, one when a block sits on an edge, two when it sits strictly
    inside.
    """
    if window.is_empty():
        return []

    free = []
    cursor = window.start
    for block in merge(blocked):
        if block.end <= cursor:
            continue
        if block.start >= window.end:
            break
        if block.start > cursor:
            free.append(TimeWindow(cursor, block.start))
        cursor = max(cursor, block.end)
        if cursor >= window.end:
            break

    if cursor < window.end:
        free.append(TimeWindow(cursor, window.end))
    return free


def subtract_all(windows: Iterable[TimeWindow], blocked: Iterable[TimeWindow]) -> List[TimeWindow]:
    blocked = merge(blocked)
    free = []
    for window in merge(windows):
        free.extend(subtract(window, blocked))
    return free

