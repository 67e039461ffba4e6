from __future__ import annotations

import datetime as dt

import pytest

from timebudget.timeutils import (
    DAY,
    HOUR,
    MILLISECOND,
    MINUTE,
    SECOND,
    WEEK,
    format_duration,
    from_minutes,
    is_new_week,
    to_minutes,
    week_start,
)


def test_units_derive_from_minute():
    assert MINUTE == 1
    assert SECOND * 60 == pytest.approx(MINUTE)
    assert MILLISECOND * 1000 == pytest.approx(SECOND)
    assert HOUR == 60
    assert DAY == 1440
    assert WEEK == 7 * DAY


@pytest.mark.parametrize(
    "minutes, expected",
    [
        (0, "0m"),
        (45, "45m"),
        (60, "1h"),
        (61, "1h 1m"),
        (150, "2h 30m"),
        (-90, "-1h 30m"),
        (-5, "-5m"),
        (59.6, "1h"),
        (119.7, "2h"),
    ],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_minutes_round_trip():
    moment = dt.datetime(2024, 1, 3, 12, 30, tzinfo=dt.timezone.utc)
    assert from_minutes(to_minutes(moment)) == moment


def test_week_start_is_local_monday_midnight(wednesday):
    start = from_minutes(week_start(wednesday, "Europe/Berlin"), "Europe/Berlin")
    assert start.weekday() == 0
    assert (start.hour, start.minute, start.second, start.microsecond) == (0, 0, 0, 0)
    assert start.date() == dt.date(2024, 1, 1)


def test_week_start_on_sunday_points_to_previous_monday():
    sunday = to_minutes(dt.datetime(2024, 1, 7, 20, 0, tzinfo=dt.timezone.utc))
    start = from_minutes(week_start(sunday, "UTC"), "UTC")
    assert start.date() == dt.date(2024, 1, 1)


def test_is_new_week(wednesday):
    marker = week_start(wednesday, "UTC")
    assert not is_new_week(marker, wednesday + DAY, "UTC")
    assert is_new_week(marker, wednesday + WEEK, "UTC")
    assert is_new_week(None, wednesday, "UTC")
