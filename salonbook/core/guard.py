# salonbook/core/guard.py

import logging
import threading
import time as _time
from contextlib import contextmanager
from datetime import date
from typing import Callable, Dict, Optional, Sequence, Tuple, TypeVar

from salonbook.core.slots import check_candidate, resolve_day
from salonbook.core.timeline import ServiceTimeline, build_timeline
from salonbook.core.timewindow import format_minutes
from salonbook.errors import BookingInPast, BookingTimeout, ClosedDay, SlotNoLongerAvailable
from salonbook.schemas import DaySnapshot, ServiceDurationProfile, SlotReason

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (date, stylist_id) so that sorting locks is chronological
StylistDayKey = Tuple[date, int]


def validate_start(
    snapshot: DaySnapshot,
    start: int,
    services: Sequence[ServiceDurationProfile],
    not_before: Optional[int] = None,
    exclude_appointment_id: Optional[int] = None,
) -> ServiceTimeline:
    """
    Re-check one start time against the given snapshot.

    Returns the candidate's timeline when it still fits, raises otherwise.
    """
    timeline = build_timeline(start, services)

    day = resolve_day(snapshot, exclude_appointment_id)
    if day is None:
        raise ClosedDay(f"Stylist {snapshot.stylist_id} is not working on {snapshot.date}")

    reason = check_candidate(day, timeline, not_before)
    if reason == SlotReason.past:
        raise BookingInPast()
    if reason is not None:
        raise SlotNoLongerAvailable(
            f"{format_minutes(start)} on {snapshot.date} is no longer available ({reason.value})"
        )
    return timeline


class BookingGuard:
    """
    Serializes re-validate-then-persist per (stylist, date).

    Slot queries never go through the guard; only writes do.
    """

    def __init__(self, lock_timeout: float = 3.0):
        self.lock_timeout = lock_timeout
        self._locks: Dict[StylistDayKey, threading.Lock] = {}
        # holders and waiters per key; an entry goes away at zero
        self._users: Dict[StylistDayKey, int] = {}
        self._registry_lock = threading.Lock()

    def _checkout(self, key: StylistDayKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: StylistDayKey) -> None:
        with self._registry_lock:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: StylistDayKey):
        """Acquire every key in chronological order within one deadline."""
        deadline = _time.monotonic() + self.lock_timeout
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                remaining = max(0.0, deadline - _time.monotonic())
                if not lock.acquire(timeout=remaining):
                    self._checkin(key)
                    logger.warning("Lock timeout for stylist %s on %s", key[1], key[0])
                    raise BookingTimeout(
                        f"Timed out after {self.lock_timeout}s waiting for stylist {key[1]} on {key[0]}"
                    )
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)

    def commit(
        self,
        key: StylistDayKey,
        load_snapshot: Callable[[], DaySnapshot],
        start: int,
        services: Sequence[ServiceDurationProfile],
        persist: Callable[[ServiceTimeline], T],
        not_before: Optional[int] = None,
        release_keys: Sequence[StylistDayKey] = (),
        exclude_appointment_id: Optional[int] = None,
    ) -> T:
        """
        Load the freshest snapshot for key, re-validate start, and persist.

        load_snapshot runs inside the critical section so the check sees
        every booking committed before the lock was granted. A reschedule
        passes the stylist-day it moves away from in release_keys and its
        own id in exclude_appointment_id, so its old occupancy is freed
        under the same locks.
        """
        try:
            with self.hold(key, *release_keys):
                snapshot = load_snapshot()
                timeline = validate_start(
                    snapshot, start, services, not_before, exclude_appointment_id
                )
                result = persist(timeline)
        except (SlotNoLongerAvailable, ClosedDay, BookingInPast) as e:
            logger.warning("Rejected booking for stylist %s on %s: %s", key[1], key[0], e.detail)
            raise

        logger.info(
            "Committed stylist %s on %s at %s-%s",
            key[1],
            key[0],
            format_minutes(timeline.start),
            format_minutes(timeline.end),
        )
        return result
