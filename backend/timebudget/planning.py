"""Day-by-day feasibility check for a weekly plan.

Minutes spread over weekdays are subtracted from each day's 24 hours, so a
negative free time flags a day that cannot hold everything planned for it.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple

from .errors import InvalidPlanError
from .timeutils import DAY, format_duration

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)
WEEKDAYS = (MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY)
EVERYDAY = WEEKDAYS + (SATURDAY, SUNDAY)
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class DayFreeTime(NamedTuple):
    day: int
    name: str
    planned: float
    free: float
    label: str


class DayPlan:
    def __init__(self) -> None:
        self.planned = [0.0] * len(DAY_NAMES)

    def spread(self, minutes: float, *days: int) -> float:
        """Share ``minutes`` evenly across ``days`` and return ``minutes``.

        Returning the input lets a spread sit inline in a budget declaration,
        e.g. ``{"Coding": plan.spread(400, *WEEKDAYS)}``.
        """
        if not days:
            raise InvalidPlanError("Spreading time needs at least one day")
        if not math.isfinite(minutes) or minutes < 0:
            raise InvalidPlanError(f"Cannot spread {minutes} minutes")
        for day in days:
            if isinstance(day, bool) or day not in range(len(DAY_NAMES)):
                raise InvalidPlanError(f"Unknown weekday {day!r}")
        share = minutes / len(days)
        for day in days:
            self.planned[day] += share
        return minutes

    def daily_free_time(self) -> List[DayFreeTime]:
        return [
            DayFreeTime(day, DAY_NAMES[day], planned, DAY - planned, format_duration(DAY - planned))
            for day, planned in enumerate(self.planned)
        ]

    def overbooked(self) -> List[DayFreeTime]:
        return [item for item in self.daily_free_time() if item.free < 0]
