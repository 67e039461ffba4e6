from __future__ import annotations

import pytest

from timebudget.budget import (
    CategoryBudget,
    budget_from_dict,
    budget_to_dict,
    category,
    chart_slices,
    default_budget,
    plus,
    total,
    total_budgeted,
)
from timebudget.errors import InvalidBudgetError
from timebudget.timeutils import HOUR


def test_subcategories_exceeding_total_are_rejected():
    with pytest.raises(InvalidBudgetError):
        CategoryBudget(time=100, subcategories={"a": 60, "b": 50})


def test_negative_allocations_are_rejected():
    with pytest.raises(InvalidBudgetError):
        CategoryBudget(time=100, subcategories={"a": -1})
    with pytest.raises(InvalidBudgetError):
        CategoryBudget(time=-5)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_allocations_are_rejected(value):
    with pytest.raises(InvalidBudgetError, match="finite"):
        CategoryBudget(time=value)
    with pytest.raises(InvalidBudgetError, match="finite"):
        CategoryBudget(time=100, subcategories={"a": value})


def test_slack_is_unassigned_category_time():
    entry = CategoryBudget(time=120, subcategories={"x": 100})
    assert entry.allocated == 100
    assert entry.slack == 20


def test_category_budget_is_immutable():
    source = {"x": 100}
    entry = CategoryBudget(time=120, subcategories=source)
    source["x"] = 500
    assert entry.subcategories["x"] == 100
    with pytest.raises(TypeError):
        entry.subcategories["x"] = 1  # type: ignore[index]


def test_with_changes_returns_new_record():
    entry = CategoryBudget(time=120, subcategories={"x": 100})
    changed = entry.with_changes(time_delta=30, subcategory_deltas={"x": 10})
    assert changed.time == 150
    assert changed.subcategories["x"] == 110
    assert entry.time == 120


def test_builder_total_and_plus():
    budget = {
        **category("Social", total(15 * HOUR), {"Friends": 2 * HOUR, "Hack night": 3 * HOUR}),
        **category("Jobs", plus(0), {"Labs": 7 * HOUR, "RHA": 4 * HOUR}),
        **category("Relax", plus(HOUR), {"Relax": 0}),
    }
    assert budget["Social"].time == 15 * HOUR
    assert budget["Jobs"].time == 11 * HOUR
    assert budget["Relax"].time == HOUR


def test_builder_total_smaller_than_subcategories_fails():
    with pytest.raises(InvalidBudgetError, match="exceeds"):
        category("Coursework", total(HOUR), {"Hw": 2 * HOUR})


def test_dict_round_trip_keeps_values():
    budget = default_budget()
    restored = budget_from_dict(budget_to_dict(budget))
    assert restored == budget
    assert total_budgeted(restored) == total_budgeted(budget)


@pytest.mark.parametrize(
    "data",
    [
        {"A": {"subcategories": {}}},
        {"A": {"time": "lots"}},
        {"A": {"time": 10, "subcategories": ["x"]}},
        {"A": {"time": 10, "subcategories": {"x": 20}}},
        {"A": {"time": "nan"}},
        {"A": {"time": 10, "subcategories": {"x": "inf"}}},
        ["A"],
    ],
)
def test_budget_from_dict_rejects_invalid_data(data):
    with pytest.raises(InvalidBudgetError):
        budget_from_dict(data)


def test_chart_slices_include_slack():
    budget = {"A": CategoryBudget(time=180, subcategories={"x": 60, "y": 60})}
    slices = chart_slices(budget)
    assert [s.label for s in slices] == ["x", "y", "A other"]
    assert [s.hours for s in slices] == [1, 1, 1]
    assert all(s.category == "A" for s in slices)


def test_chart_slices_skip_empty_slack():
    budget = {"A": CategoryBudget(time=60, subcategories={"x": 60})}
    assert [s.label for s in chart_slices(budget)] == ["x"]


def test_budget_records_are_slotted():
    entry = CategoryBudget(time=60)
    assert not hasattr(entry, "__dict__")
    assert "time" in CategoryBudget.__slots__
