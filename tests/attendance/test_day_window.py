from __future__ import annotations

from datetime import datetime, timedelta

import pytest
import pytz

from workforce_sync.attendance.day_window import day_window, window_for_date, work_date
from workforce_sync.common.datetime_utils import site_timezone


def _local(tz, *args):
    return tz.localize(datetime(*args))


def test_window_after_cutoff_starts_today(seoul):
    window = day_window(_local(seoul, 2024, 3, 15, 10, 0), seoul)

    assert window.start == _local(seoul, 2024, 3, 15, 5, 0)
    assert window.end == _local(seoul, 2024, 3, 16, 5, 0)


def test_window_before_cutoff_rolls_back_a_day(seoul):
    early = day_window(_local(seoul, 2024, 3, 15, 3, 0), seoul)
    late = day_window(_local(seoul, 2024, 3, 15, 5, 0), seoul)

    assert early.start.date() == datetime(2024, 3, 14).date()
    assert late.start.date() - early.start.date() == timedelta(days=1)
    assert early.end == late.start


def test_window_is_always_24h_at_five_oclock(seoul):
    instant = pytz.utc.localize(datetime(2024, 12, 30, 0, 0))
    for _ in range(4 * 24 * 3):
        window = day_window(instant, seoul)
        assert window.end - window.start == timedelta(hours=24)
        for bound in (window.start, window.end):
            assert (bound.hour, bound.minute, bound.second, bound.microsecond) == (5, 0, 0, 0)
        assert window.contains(instant)
        instant += timedelta(minutes=15)


def test_boundaries_are_half_open(seoul):
    window = day_window(_local(seoul, 2024, 3, 15, 12, 0), seoul)

    assert window.contains(window.start)
    assert not window.contains(window.end)
    assert window.contains(window.end - timedelta(milliseconds=1))


def test_utc_and_naive_inputs_are_read_as_instants(seoul):
    # 19:30 UTC on the 14th is 04:30 on the 15th in Seoul: still the 14th's shift.
    assert work_date(pytz.utc.localize(datetime(2024, 3, 14, 19, 30)), seoul) == datetime(2024, 3, 14).date()
    assert work_date(datetime(2024, 3, 14, 20, 0), seoul) == datetime(2024, 3, 15).date()


def test_custom_cutoff_hour(seoul):
    window = day_window(_local(seoul, 2024, 3, 15, 5, 30), seoul, cutoff_hour=6)

    assert window.start == _local(seoul, 2024, 3, 14, 6, 0)


@pytest.mark.parametrize("name", ["Asia/Seoul", "Asia/Tokyo", "UTC"])
def test_site_timezone_gives_24_hour_days(name):
    tz = site_timezone(name)

    window = window_for_date(datetime(2024, 3, 10).date(), tz)

    assert window.end - window.start == timedelta(hours=24)


@pytest.mark.parametrize("name", ["America/New_York", "Europe/Berlin", "Australia/Sydney"])
def test_site_timezone_rejects_daylight_saving_zones(name):
    with pytest.raises(ValueError):
        site_timezone(name)
