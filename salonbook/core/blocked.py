# salonbook/core/blocked.py

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Union

from pydantic import TypeAdapter, ValidationError

from salonbook.core.timewindow import TimeWindow, merge, parse_time, overlaps
from salonbook.errors import BlockedPeriodConflict, InvalidBlockedPeriod
from salonbook.schemas import BlockedPeriod, FullDayBlock, PartialBlock

logger = logging.getLogger(__name__)

_blocked_adapter = TypeAdapter(BlockedPeriod)


def parse_blocked_period(raw: Mapping[str, Any]) -> Union[FullDayBlock, PartialBlock]:
    """
    Validate a blocked period record into its tagged form.

    Records carrying an is_full_day flag instead of a kind are accepted
    only when the flag agrees with the presence of times.
    """
    data = dict(raw)
    if "kind" not in data and "is_full_day" in data:
        is_full_day = data.pop("is_full_day")
        has_times = data.get("start_time") is not None or data.get("end_time") is not None
        if is_full_day and has_times:
            raise InvalidBlockedPeriod("Full-day block cannot carry start_time/end_time")
        if not is_full_day and not has_times:
            raise InvalidBlockedPeriod("Partial block needs start_time and end_time")
        data["kind"] = "full_day" if is_full_day else "partial"
        if is_full_day:
            data.pop("start_time", None)
            data.pop("end_time", None)

    try:
        return _blocked_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidBlockedPeriod(f"Invalid blocked period: {e.errors()[0]['msg']}")


def has_full_day_block(target_date: date, blocked: Iterable[Union[FullDayBlock, PartialBlock]]) -> bool:
    return any(isinstance(b, FullDayBlock) and b.date == target_date for b in blocked)


def block_window(block: PartialBlock) -> TimeWindow:
    return TimeWindow(parse_time(block.start_time), parse_time(block.end_time))


def resolve_blocked_windows(
    target_date: date,
    working_window: TimeWindow,
    blocked: Iterable[Union[FullDayBlock, PartialBlock]],
) -> List[TimeWindow]:
    """
    Unavailable windows for the date, clipped to the working window.

    A full-day block swallows everything, including any partial blocks
    recorded for the same date.
    """
    partial_windows = []
    for block in blocked:
        if block.date != target_date:
            continue
        if isinstance(block, FullDayBlock):
            logger.debug("Full-day block on %s: %s", target_date, block.reason or "-")
            return [working_window]

        clipped = block_window(block).clip(working_window)
        if clipped is not None:
            partial_windows.append(clipped)

    return merge(partial_windows)


def check_new_block(
    new_block: Union[FullDayBlock, PartialBlock],
    existing: Iterable[Union[FullDayBlock, PartialBlock]],
) -> None:
    """At most one full-day block per date; partial blocks never overlap."""
    for block in existing:
        if block.date != new_block.date:
            continue
        if isinstance(new_block, FullDayBlock) and isinstance(block, FullDayBlock):
            raise BlockedPeriodConflict(f"{new_block.date} is already blocked for the full day")
        if isinstance(new_block, PartialBlock) and isinstance(block, PartialBlock):
            if overlaps(block_window(new_block), block_window(block)):
                raise BlockedPeriodConflict("Block overlaps existing block")
