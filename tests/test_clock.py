# tests/test_clock.py

from datetime import date, datetime, timezone

from salonbook.clock import not_before_for, to_instant
from salonbook.config import settings
from salonbook.core.timewindow import MINUTES_PER_DAY

NOW = datetime(2030, 1, 7, 8, 0, 30, tzinfo=settings.tz)


def test_future_dates_have_no_lower_bound():
    assert not_before_for(date(2030, 1, 8), NOW, notice_minutes=60) is None


def test_today_is_rounded_up_to_the_next_minute():
    assert not_before_for(date(2030, 1, 7), NOW, notice_minutes=60) == 9 * 60 + 1
    assert not_before_for(date(2030, 1, 7), NOW, notice_minutes=0) == 8 * 60 + 1


def test_past_dates_are_closed_entirely():
    assert not_before_for(date(2030, 1, 6), NOW, notice_minutes=60) > MINUTES_PER_DAY


def test_notice_can_roll_into_tomorrow():
    late = datetime(2030, 1, 7, 23, 30, tzinfo=settings.tz)
    assert not_before_for(date(2030, 1, 7), late, notice_minutes=60) > MINUTES_PER_DAY
    assert not_before_for(date(2030, 1, 8), late, notice_minutes=60) == 30


def test_now_in_another_zone_is_converted():
    utc_now = NOW.astimezone(timezone.utc)
    assert not_before_for(date(2030, 1, 7), utc_now, notice_minutes=0) == 8 * 60 + 1


def test_to_instant_is_business_local():
    instant = to_instant(date(2030, 1, 7), 630)
    assert instant == datetime(2030, 1, 7, 10, 30, tzinfo=settings.tz)
