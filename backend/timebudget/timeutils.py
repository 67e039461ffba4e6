"""Time units and conversions.

The canonical unit of the whole application is the minute: timestamps are
minutes since the Unix epoch and durations are minutes.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, Union

from zoneinfo import ZoneInfo

MINUTE = 1
SECOND = MINUTE / 60
MILLISECOND = SECOND / 1000
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

UTC = dt.timezone.utc

TzLike = Union[str, dt.tzinfo, None]


def _tz(value: TzLike) -> dt.tzinfo:
    if value is None:
        return UTC
    if isinstance(value, str):
        return ZoneInfo(value)
    return value


def to_minutes(value: dt.datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp() / 60


def from_minutes(minutes: float, tz: TzLike = None) -> dt.datetime:
    return dt.datetime.fromtimestamp(minutes * 60, tz=_tz(tz))


def now_minutes() -> float:
    return to_minutes(dt.datetime.now(UTC))


def week_start(now: Optional[float] = None, tz: TzLike = None) -> float:
    """Return Monday 00:00:00.000 local time of the week containing ``now``."""
    current = from_minutes(now_minutes() if now is None else now, tz)
    monday = current.date() - dt.timedelta(days=current.weekday())
    start_local = dt.datetime.combine(monday, dt.time.min, tzinfo=current.tzinfo)
    return to_minutes(start_local)


def is_new_week(marker: Optional[float], now: Optional[float] = None, tz: TzLike = None) -> bool:
    if marker is None:
        return True
    return week_start(now, tz) != marker


def format_duration(minutes: float) -> str:
    # Round first so 59.6 minutes never renders as "60m".
    rounded = int(round(minutes))
    sign = "-" if rounded < 0 else ""
    hours, remaining = divmod(abs(rounded), HOUR)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if remaining or not hours:
        parts.append(f"{remaining}m")
    return sign + " ".join(parts)
