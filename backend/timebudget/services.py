from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from .accounting import (
    AccumulatedTime,
    accumulate_time,
    calculate_category_overage,
    calculate_overage,
    get_unallocated_time,
    summarize,
)
from .budget import BudgetConfig, budget_from_dict, chart_slices, default_budget
from .config import settings
from .errors import InvalidBudgetError, InvalidPlanError, InvalidReallocationError, InvalidSplitError
from .models import TimeEntry
from .planning import DayPlan
from .reallocation import get_available_time, reallocate_time, validate_reallocation
from .store import TEMPLATE_KEY, BudgetStore, TimeEntryStore
from .timers import SplitEntry, TimerManager
from .timeutils import week_start


def build_timer_manager(db: Session, clock: Callable[[], float]) -> TimerManager:
    return TimerManager(
        TimeEntryStore(db),
        clock=clock,
        concurrent_window=settings.concurrent_window_minutes,
        stale_after=settings.stale_after_minutes,
        single_running=settings.single_running,
    )


def budget_store(db: Session) -> BudgetStore:
    return BudgetStore(db, tz=settings.timezone)


def current_week_entries(db: Session, now: float) -> List[TimeEntry]:
    return TimeEntryStore(db).query(week_start(now, settings.timezone))


def weekly_accumulated(db: Session, now: float) -> AccumulatedTime:
    return accumulate_time(current_week_entries(db, now))


def _ensure_known(budget: BudgetConfig, category: str, subcategory: str) -> None:
    entry = budget.get(category)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown category '{category}'")
    if subcategory not in entry.subcategories:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown subcategory '{subcategory}' in category '{category}'",
        )


def start_task(db: Session, clock: Callable[[], float], category: str, subcategory: str) -> TimeEntry:
    _ensure_known(budget_store(db).load_weekly(clock()), category, subcategory)
    return build_timer_manager(db, clock).start_new_task(category, subcategory)


def switch_task(db: Session, clock: Callable[[], float], category: str, subcategory: str) -> TimeEntry:
    _ensure_known(budget_store(db).load_weekly(clock()), category, subcategory)
    return build_timer_manager(db, clock).switch_task_concurrent(category, subcategory)


def stop_task(db: Session, clock: Callable[[], float]) -> TimeEntry:
    entry = build_timer_manager(db, clock).finish_task()
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No task to stop")
    return entry


def stop_task_by_id(db: Session, clock: Callable[[], float], entry_id: int) -> TimeEntry:
    manager = build_timer_manager(db, clock)
    if manager.store.get(entry_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    entry = manager.finish_task_by_id(entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="At least one task must keep running")
    return entry


def split_time(db: Session, clock: Callable[[], float], items: Sequence[Dict[str, Any]]) -> List[TimeEntry]:
    budget = budget_store(db).load_weekly(clock())
    for item in items:
        _ensure_known(budget, item["category"], item["subcategory"])
    try:
        return build_timer_manager(db, clock).split_time([SplitEntry(**item) for item in items])
    except InvalidSplitError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def save_template(db: Session, data: Dict[str, Any]) -> BudgetConfig:
    try:
        budget = budget_from_dict(data)
    except InvalidBudgetError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not budget_store(db).save(TEMPLATE_KEY, budget):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Budget could not be saved")
    return budget


def week_summary(db: Session, now: float) -> Dict[str, Any]:
    budget = budget_store(db).load_weekly(now)
    accumulated = weekly_accumulated(db, now)
    return {
        "week_start": week_start(now, settings.timezone),
        "unallocated": get_unallocated_time(budget),
        "overage": calculate_overage(budget, accumulated),
        "category_overage": calculate_category_overage(budget, accumulated),
        "categories": summarize(budget, accumulated),
    }


def available_time(db: Session, now: float, category: str, subcategory: Optional[str]) -> float:
    budget = budget_store(db).load_weekly(now)
    if category not in budget or (subcategory is not None and subcategory not in budget[category].subcategories):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown budget location")
    return get_available_time(budget, weekly_accumulated(db, now), category, subcategory)


def reallocate(db: Session, now: float, changes: Dict[str, Any]) -> BudgetConfig:
    store = budget_store(db)
    budget = store.load_weekly(now)
    accumulated = weekly_accumulated(db, now)
    check = validate_reallocation(
        budget,
        accumulated,
        changes.get("from_category"),
        changes.get("from_subcategory"),
        changes["to_category"],
        changes.get("to_subcategory"),
        changes["amount"],
    )
    if not check.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=check.reason)
    try:
        updated = reallocate_time(
            budget,
            changes.get("from_category"),
            changes.get("from_subcategory"),
            changes["to_category"],
            changes.get("to_subcategory"),
            changes["amount"],
        )
    except (InvalidReallocationError, InvalidBudgetError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not store.save_weekly(updated, now):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Budget could not be saved")
    return updated


def budget_chart(db: Session, now: float) -> List[Dict[str, Any]]:
    return [item._asdict() for item in chart_slices(budget_store(db).load_weekly(now))]


def plan_report(plan: DayPlan) -> Dict[str, Any]:
    return {
        "days": [item._asdict() for item in plan.daily_free_time()],
        "overbooked": [item.name for item in plan.overbooked()],
    }


def daily_plan(spreads: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    plan = DayPlan()
    try:
        for item in spreads:
            plan.spread(item["minutes"], *item["days"])
    except InvalidPlanError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return plan_report(plan)


def default_daily_plan() -> Dict[str, Any]:
    plan = DayPlan()
    default_budget(plan)
    return plan_report(plan)
