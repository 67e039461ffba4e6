from __future__ import annotations

import pytest

from timebudget.budget import default_budget
from timebudget.errors import InvalidPlanError
from timebudget.planning import (
    EVERYDAY,
    MONDAY,
    SATURDAY,
    THURSDAY,
    TUESDAY,
    WEEKDAYS,
    DayPlan,
)
from timebudget.timeutils import DAY, HOUR


def test_spread_returns_minutes_and_shares_them_evenly():
    plan = DayPlan()
    assert plan.spread(2 * HOUR, TUESDAY, THURSDAY) == 2 * HOUR
    assert plan.planned[TUESDAY] == HOUR
    assert plan.planned[THURSDAY] == HOUR
    assert plan.planned[MONDAY] == 0


def test_free_time_starts_from_a_full_day():
    report = DayPlan().daily_free_time()
    assert len(report) == 7
    assert report[0].name == "Monday"
    assert all(item.free == DAY for item in report)
    assert report[0].label == "24h"


def test_overbooked_days_report_negative_free_time():
    plan = DayPlan()
    plan.spread(8 * HOUR * 7, *EVERYDAY)
    plan.spread(20 * HOUR, MONDAY)
    overbooked = plan.overbooked()
    assert [item.day for item in overbooked] == [MONDAY]
    assert overbooked[0].free == -4 * HOUR
    assert overbooked[0].label == "-4h"
    assert plan.daily_free_time()[SATURDAY].label == "16h"


@pytest.mark.parametrize(
    "minutes, days",
    [
        (60, ()),
        (60, (7,)),
        (60, (-1,)),
        (-5, (MONDAY,)),
        (float("nan"), (MONDAY,)),
        (float("inf"), WEEKDAYS),
    ],
)
def test_spread_rejects_invalid_input(minutes, days):
    plan = DayPlan()
    with pytest.raises(InvalidPlanError):
        plan.spread(minutes, *days)
    assert plan.planned == [0.0] * 7


def test_default_budget_records_its_weekday_plan():
    plan = DayPlan()
    assert default_budget(plan) == default_budget()
    # Coding 80/weekday, Meetings 50 on Tue/Thu, Exercise 180/7 every day.
    assert plan.planned[MONDAY] == pytest.approx(80 + 180 / 7)
    assert plan.planned[TUESDAY] == pytest.approx(130 + 180 / 7)
    assert plan.planned[SATURDAY] == pytest.approx(180 / 7)
    labels = [item.label for item in plan.daily_free_time()]
    assert labels[MONDAY] == "22h 14m"
    assert labels[TUESDAY] == "21h 24m"
    assert labels[SATURDAY] == "23h 34m"
