from __future__ import annotations

from datetime import datetime

import pytz


def site_timezone(name: str):
    """Resolve the site zone for day windows.

    Zones that observe daylight saving time are rejected: a 05:00 to 05:00 day
    there lasts 23 or 25 hours on transition days.
    """
    tz = pytz.timezone(name)
    year = datetime.now(pytz.utc).year
    if tz.utcoffset(datetime(year, 1, 1)) != tz.utcoffset(datetime(year, 7, 1)):
        raise ValueError(f"site timezone {name} observes daylight saving time")
    return tz


def now_utc() -> datetime:
    """Current instant, tz-aware. Wrapped so tests can patch it."""
    return datetime.now(pytz.utc)


def parse_instant(value: str, tz) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are interpreted as site-local wall time.
    """
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = tz.localize(parsed)
    return parsed.astimezone(pytz.utc)


def to_naive_utc(value: datetime) -> datetime:
    """MySQL DATETIME columns hold naive UTC."""
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def from_naive_utc(value: datetime) -> datetime:
    return pytz.utc.localize(value) if value.tzinfo is None else value


def isoformat_or_none(value) -> str | None:
    return value.isoformat() if value is not None else None
