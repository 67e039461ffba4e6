"""Spent-time aggregation and overage computations."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Union

from .budget import CategoryBudget, total_budgeted
from .timeutils import WEEK


class CategoryKey(NamedTuple):
    category: str


class SubcategoryKey(NamedTuple):
    category: str
    subcategory: str


AccumulatedTime = Dict[Union[CategoryKey, SubcategoryKey], float]


def accumulate_time(entries: Iterable[Any]) -> AccumulatedTime:
    """Sum durations per category and per (category, subcategory).

    Running entries have no duration yet and contribute nothing.
    """
    by_category: Dict[CategoryKey, float] = defaultdict(float)
    by_subcategory: Dict[SubcategoryKey, float] = defaultdict(float)
    for entry in entries:
        duration = entry.duration or 0
        by_category[CategoryKey(entry.category)] += duration
        by_subcategory[SubcategoryKey(entry.category, entry.subcategory)] += duration
    accumulated: AccumulatedTime = {}
    accumulated.update(by_category)
    accumulated.update(by_subcategory)
    return accumulated


def spent(accumulated: Mapping, category: str, subcategory: Optional[str] = None) -> float:
    if subcategory is None:
        return accumulated.get(CategoryKey(category), 0)
    return accumulated.get(SubcategoryKey(category, subcategory), 0)


def get_unallocated_time(budget: Mapping[str, CategoryBudget]) -> float:
    # Negative when the week is over-allocated.
    return WEEK - total_budgeted(budget)


def calculate_overage(budget: Mapping[str, CategoryBudget], accumulated: Mapping) -> float:
    overage = 0.0
    for name, entry in budget.items():
        overage += max(0, spent(accumulated, name) - entry.time)
    return overage


def calculate_category_overage(budget: Mapping[str, CategoryBudget], accumulated: Mapping) -> Dict[str, float]:
    """Overage per category as the sum of its subcategories' own overages.

    A category that is under budget overall still reports the overage of a
    subcategory that overspent locally.
    """
    result: Dict[str, float] = {}
    for name, entry in budget.items():
        result[name] = sum(
            max(0, spent(accumulated, name, sub) - minutes) for sub, minutes in entry.subcategories.items()
        )
    return result


def summarize(budget: Mapping[str, CategoryBudget], accumulated: Mapping) -> List[Dict[str, Any]]:
    category_overage = calculate_category_overage(budget, accumulated)
    rows: List[Dict[str, Any]] = []
    for name, entry in budget.items():
        used = spent(accumulated, name)
        subcategories = []
        for sub, minutes in entry.subcategories.items():
            sub_used = spent(accumulated, name, sub)
            subcategories.append(
                {
                    "subcategory": sub,
                    "budgeted": minutes,
                    "spent": sub_used,
                    "remaining": minutes - sub_used,
                    "overage": max(0, sub_used - minutes),
                }
            )
        rows.append(
            {
                "category": name,
                "budgeted": entry.time,
                "slack": entry.slack,
                "spent": used,
                "remaining": entry.time - used,
                "overage": max(0, used - entry.time),
                "subcategory_overage": category_overage[name],
                "subcategories": subcategories,
            }
        )
    return rows
