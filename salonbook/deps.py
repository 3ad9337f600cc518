# salonbook/deps.py

from datetime import datetime
from functools import lru_cache

from salonbook.clock import business_now
from salonbook.config import settings
from salonbook.core.guard import BookingGuard


@lru_cache
def get_booking_guard() -> BookingGuard:
    # one guard per process; its locks are what serialize commits
    return BookingGuard(lock_timeout=settings.BOOKING_LOCK_TIMEOUT_SECONDS)


def get_now() -> datetime:
    return business_now()
