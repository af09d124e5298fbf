"""Organizational day boundaries.

The attendance day runs from the cutoff hour (05:00 site-local) to the same
hour the next day, so night-shift check-ins before the cutoff belong to the
previous calendar day.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytz

from ..core.constants import DAY_CUTOFF_HOUR
from .model import DayWindow


def work_date(instant: datetime, tz, cutoff_hour: int = DAY_CUTOFF_HOUR) -> date:
    """Calendar date the instant is attributed to."""
    if instant.tzinfo is None:
        instant = pytz.utc.localize(instant)
    local = instant.astimezone(tz)
    if local.hour < cutoff_hour:
        return local.date() - timedelta(days=1)
    return local.date()


def window_for_date(day: date, tz, cutoff_hour: int = DAY_CUTOFF_HOUR) -> DayWindow:
    # Both bounds are localized separately; site_timezone rejects DST zones, so
    # the window is always 24h.
    start = tz.localize(datetime.combine(day, time(cutoff_hour)))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time(cutoff_hour)))
    return DayWindow(start=start, end=end)


def day_window(now: datetime, tz, cutoff_hour: int = DAY_CUTOFF_HOUR) -> DayWindow:
    return window_for_date(work_date(now, tz, cutoff_hour), tz, cutoff_hour)
