"""Moving budgeted minutes between categories and subcategories mid-week."""

from __future__ import annotations

import math
from typing import Mapping, NamedTuple, Optional

from .accounting import calculate_category_overage, get_unallocated_time, spent
from .budget import BudgetConfig, CategoryBudget
from .errors import InvalidReallocationError, UnknownCategoryError


class ReallocationCheck(NamedTuple):
    valid: bool
    reason: Optional[str] = None


def _lookup(budget: Mapping[str, CategoryBudget], category: str, subcategory: Optional[str] = None) -> CategoryBudget:
    entry = budget.get(category)
    if entry is None:
        raise UnknownCategoryError(category)
    if subcategory is not None and subcategory not in entry.subcategories:
        raise UnknownCategoryError(category, subcategory)
    return entry


def get_available_time(
    budget: Mapping[str, CategoryBudget],
    accumulated: Mapping,
    category: str,
    subcategory: Optional[str] = None,
) -> float:
    """Minutes that may be moved out of a category or one of its subcategories.

    A subcategory yields at most its own unspent allocation and never more
    than the category has left. Without a subcategory only the category's
    slack is available, minus whatever its subcategories overspent into it.
    """
    entry = _lookup(budget, category, subcategory)
    category_left = max(0, entry.time - spent(accumulated, category))
    if subcategory is not None:
        sub_left = max(0, entry.subcategories[subcategory] - spent(accumulated, category, subcategory))
        return min(sub_left, category_left)
    overage = calculate_category_overage({category: entry}, accumulated)[category]
    return entry.slack - overage


def validate_reallocation(
    budget: Mapping[str, CategoryBudget],
    accumulated: Mapping,
    from_category: Optional[str],
    from_subcategory: Optional[str],
    to_category: str,
    to_subcategory: Optional[str],
    amount: float,
) -> ReallocationCheck:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        return ReallocationCheck(False, "Amount must be a positive number of minutes")
    if from_category is None and from_subcategory is not None:
        return ReallocationCheck(False, "A source subcategory needs a source category")
    if from_category == to_category and from_subcategory == to_subcategory:
        return ReallocationCheck(False, "Source and destination are the same")
    try:
        _lookup(budget, to_category, to_subcategory)
        if from_category is None:
            available = max(0, get_unallocated_time(budget))
        else:
            available = get_available_time(budget, accumulated, from_category, from_subcategory)
    except UnknownCategoryError as exc:
        return ReallocationCheck(False, str(exc))
    if amount > available:
        return ReallocationCheck(False, f"Only {available:g} minutes are available to move")
    return ReallocationCheck(True)


def reallocate_time(
    budget: Mapping[str, CategoryBudget],
    from_category: Optional[str],
    from_subcategory: Optional[str],
    to_category: str,
    to_subcategory: Optional[str],
    amount: float,
) -> BudgetConfig:
    """Return a new budget with ``amount`` moved; ``budget`` is left untouched.

    ``from_category=None`` draws from the week's unallocated time, so only the
    destination is credited. Category totals move only when the source and
    destination categories differ; within one category the minutes shift
    between a subcategory and the slack.
    """
    try:
        _lookup(budget, to_category, to_subcategory)
        if from_category is not None:
            _lookup(budget, from_category, from_subcategory)
    except UnknownCategoryError as exc:
        raise InvalidReallocationError(str(exc)) from exc
    if from_category is None and from_subcategory is not None:
        raise InvalidReallocationError("A source subcategory needs a source category")

    result: BudgetConfig = dict(budget)
    crosses_categories = from_category != to_category

    if from_category is not None:
        deltas = {from_subcategory: -amount} if from_subcategory is not None else None
        result[from_category] = result[from_category].with_changes(
            time_delta=-amount if crosses_categories else 0,
            subcategory_deltas=deltas,
        )

    deltas = {to_subcategory: amount} if to_subcategory is not None else None
    result[to_category] = result[to_category].with_changes(
        time_delta=amount if crosses_categories else 0,
        subcategory_deltas=deltas,
    )
    return result
