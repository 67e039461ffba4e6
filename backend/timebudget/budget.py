"""Budget model: categories, subcategories and their weekly allocations."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from .errors import InvalidBudgetError
from .planning import EVERYDAY, THURSDAY, TUESDAY, WEEKDAYS, DayPlan
from .timeutils import HOUR

# Absorbs float noise left behind by repeated reallocations.
TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class CategoryBudget:
    """Weekly allocation of one category.

    ``time`` may exceed the sum of the subcategory allocations; the surplus is
    slack that is not assigned to any subcategory.
    """

    time: float
    subcategories: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        subcategories = dict(self.subcategories)
        for name, minutes in subcategories.items():
            if not name:
                raise InvalidBudgetError("Subcategory names must not be empty")
            if not math.isfinite(minutes):
                raise InvalidBudgetError(f"Subcategory '{name}' needs a finite allocation ({minutes})")
            if minutes < -TOLERANCE:
                raise InvalidBudgetError(f"Subcategory '{name}' has a negative allocation ({minutes})")
        if not math.isfinite(self.time):
            raise InvalidBudgetError(f"Category time must be finite ({self.time})")
        if self.time < -TOLERANCE:
            raise InvalidBudgetError(f"Category time must not be negative ({self.time})")
        allocated = sum(subcategories.values())
        if allocated > self.time + TOLERANCE:
            raise InvalidBudgetError(
                f"Total time cannot be less than combined subcategory time ({allocated} exceeds {self.time})"
            )
        object.__setattr__(self, "subcategories", MappingProxyType(subcategories))

    @property
    def allocated(self) -> float:
        return sum(self.subcategories.values())

    @property
    def slack(self) -> float:
        return self.time - self.allocated

    def with_changes(
        self, time_delta: float = 0, subcategory_deltas: Optional[Mapping[str, float]] = None
    ) -> "CategoryBudget":
        subcategories = dict(self.subcategories)
        for name, delta in (subcategory_deltas or {}).items():
            subcategories[name] = subcategories.get(name, 0) + delta
        return CategoryBudget(time=self.time + time_delta, subcategories=subcategories)

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "subcategories": dict(self.subcategories)}


BudgetConfig = Dict[str, CategoryBudget]


def total_budgeted(budget: Mapping[str, CategoryBudget]) -> float:
    return sum(entry.time for entry in budget.values())


def budget_from_dict(data: Mapping[str, Any]) -> BudgetConfig:
    if not isinstance(data, Mapping):
        raise InvalidBudgetError("Budget must be a mapping of category names")
    budget: BudgetConfig = {}
    for name, raw in data.items():
        if not name:
            raise InvalidBudgetError("Category names must not be empty")
        if not isinstance(raw, Mapping) or "time" not in raw:
            raise InvalidBudgetError(f"Category '{name}' needs a 'time' value")
        subcategories = raw.get("subcategories") or {}
        if not isinstance(subcategories, Mapping):
            raise InvalidBudgetError(f"Subcategories of '{name}' must be a mapping")
        try:
            time = float(raw["time"])
            minutes = {key: float(value) for key, value in subcategories.items()}
        except (TypeError, ValueError) as exc:
            raise InvalidBudgetError(f"Category '{name}' contains a non-numeric value") from exc
        budget[name] = CategoryBudget(time=time, subcategories=minutes)
    return budget


def budget_to_dict(budget: Mapping[str, CategoryBudget]) -> Dict[str, Dict[str, Any]]:
    return {name: entry.to_dict() for name, entry in budget.items()}


# Builder helpers for declaring budgets in code.


class Allocation(NamedTuple):
    kind: str
    minutes: float


def total(minutes: float) -> Allocation:
    """Category time given explicitly; must cover all subcategories."""
    return Allocation("total", minutes)


def plus(minutes: float) -> Allocation:
    """Category time is the subcategory sum plus ``minutes`` of slack."""
    return Allocation("plus", minutes)


def category(name: str, allocation: Allocation, subcategories: Mapping[str, float]) -> BudgetConfig:
    allocated = sum(subcategories.values())
    if allocation.kind == "total":
        if allocated > allocation.minutes:
            raise InvalidBudgetError(
                f"Total time cannot be less than combined subcategory time "
                f"({allocated} exceeds {allocation.minutes})"
            )
        time = allocation.minutes
    elif allocation.kind == "plus":
        time = allocated + allocation.minutes
    else:
        raise InvalidBudgetError(f"Unknown allocation kind '{allocation.kind}'")
    return {name: CategoryBudget(time=time, subcategories=subcategories)}


def default_budget(plan: Optional[DayPlan] = None) -> BudgetConfig:
    """Starter budget; pass ``plan`` to see how it lands on each weekday."""
    plan = plan if plan is not None else DayPlan()
    return {
        **category(
            "Work",
            total(10 * HOUR),
            {"Coding": plan.spread(400, *WEEKDAYS), "Meetings": plan.spread(100, TUESDAY, THURSDAY)},
        ),
        **category("Personal", plus(2 * HOUR), {"Exercise": plan.spread(3 * HOUR, *EVERYDAY)}),
    }


class ChartSlice(NamedTuple):
    label: str
    category: str
    hours: float


def chart_slices(budget: Mapping[str, CategoryBudget]) -> List[ChartSlice]:
    """Pie chart data: every subcategory plus the category's unassigned slack."""
    slices: List[ChartSlice] = []
    for name, entry in budget.items():
        for sub, minutes in entry.subcategories.items():
            slices.append(ChartSlice(sub, name, minutes / HOUR))
        if entry.slack > 0:
            slices.append(ChartSlice(f"{name} other", name, entry.slack / HOUR))
    return slices
