"""Calendar helpers for daily and weekly accounting windows.

Weeks are Monday-anchored: a week runs Monday 00:00 through Sunday 23:59
of the calendar week containing the given moment.

No I/O: this module only transforms dates.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def now_in(tz_name: str) -> datetime:
    """Return the current time as an aware datetime in the given timezone."""
    return datetime.now(ZoneInfo(tz_name))


def _as_date(moment: date | datetime) -> date:
    if isinstance(moment, datetime):
        return moment.date()
    return moment


def today(moment: date | datetime) -> str:
    """Calendar date of *moment* as YYYY-MM-DD."""
    return _as_date(moment).isoformat()


def week_start(moment: date | datetime) -> str:
    """Monday of the week containing *moment*, as YYYY-MM-DD."""
    d = _as_date(moment)
    return (d - timedelta(days=d.weekday())).isoformat()


def week_end(moment: date | datetime) -> str:
    """Sunday of the week containing *moment*, as YYYY-MM-DD."""
    d = _as_date(moment)
    return (d + timedelta(days=6 - d.weekday())).isoformat()


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
