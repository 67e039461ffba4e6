from __future__ import annotations

import logging
from typing import Callable, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, Query, Response, status
from sqlalchemy.orm import Session

from .accounting import get_unallocated_time
from .budget import budget_to_dict
from .config import settings
from .database import engine, get_db, init_schema
from .export import export_csv, export_xlsx
from .logging_setup import setup_logging
from .schemas import (
    AvailableResponse,
    BudgetResponse,
    CategoryBudgetSchema,
    ChartSliceResponse,
    CleanupResponse,
    DailyPlanRequest,
    DailyPlanResponse,
    ReallocationRequest,
    SplitRequest,
    SummaryResponse,
    TaskRequest,
    TimeEntryResponse,
    budget_payload,
)
from .services import (
    available_time,
    budget_chart,
    budget_store,
    build_timer_manager,
    current_week_entries,
    daily_plan,
    default_daily_plan,
    reallocate,
    save_template,
    split_time,
    start_task,
    stop_task,
    stop_task_by_id,
    switch_task,
    week_summary,
)
from .store import TEMPLATE_KEY, TimeEntryStore
from .timeutils import format_duration, now_minutes

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

init_schema(engine)

app = FastAPI(title=settings.app_name)


def get_clock() -> Callable[[], float]:
    return now_minutes


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/entries", response_model=List[TimeEntryResponse])
def list_entries(since: Optional[float] = None, db: Session = Depends(get_db)):
    store = TimeEntryStore(db)
    return store.all() if since is None else store.query(since)


@app.get("/entries/week", response_model=List[TimeEntryResponse])
def list_week_entries(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return current_week_entries(db, clock())


@app.post("/timers/start", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
def timer_start(payload: TaskRequest, db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return start_task(db, clock, payload.category, payload.subcategory)


@app.post("/timers/switch", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
def timer_switch(payload: TaskRequest, db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return switch_task(db, clock, payload.category, payload.subcategory)


@app.post("/timers/stop", response_model=TimeEntryResponse)
def timer_stop(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return stop_task(db, clock)


@app.post("/timers/{entry_id}/stop", response_model=TimeEntryResponse)
def timer_stop_by_id(entry_id: int, db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return stop_task_by_id(db, clock, entry_id)


@app.get("/timers/active", response_model=Optional[TimeEntryResponse])
def timer_active(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return build_timer_manager(db, clock).active_timer()


@app.get("/timers/running", response_model=List[TimeEntryResponse])
def timer_running(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return build_timer_manager(db, clock).active_timers()


@app.post("/timers/cleanup", response_model=CleanupResponse)
def timer_cleanup(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return CleanupResponse(removed=build_timer_manager(db, clock).cleanup_long_running_tasks())


@app.post("/timers/split", response_model=List[TimeEntryResponse], status_code=status.HTTP_201_CREATED)
def timer_split(payload: SplitRequest, db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return split_time(db, clock, [item.model_dump() for item in payload.entries])


@app.get("/budget/template", response_model=BudgetResponse)
def get_template(db: Session = Depends(get_db)):
    budget = budget_store(db).load(TEMPLATE_KEY)
    return budget_payload(budget_to_dict(budget), get_unallocated_time(budget))


@app.put("/budget/template", response_model=BudgetResponse)
def put_template(payload: Dict[str, CategoryBudgetSchema], db: Session = Depends(get_db)):
    budget = save_template(db, {name: entry.model_dump() for name, entry in payload.items()})
    return budget_payload(budget_to_dict(budget), get_unallocated_time(budget))


@app.get("/budget/week", response_model=BudgetResponse)
def get_week_budget(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    budget = budget_store(db).load_weekly(clock())
    return budget_payload(budget_to_dict(budget), get_unallocated_time(budget))


@app.post("/budget/week/reset", response_model=BudgetResponse)
def reset_week_budget(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    budget = budget_store(db).reset_weekly(clock())
    return budget_payload(budget_to_dict(budget), get_unallocated_time(budget))


@app.get("/budget/daily-plan", response_model=DailyPlanResponse)
def get_default_daily_plan():
    return default_daily_plan()


@app.post("/budget/daily-plan", response_model=DailyPlanResponse)
def post_daily_plan(payload: DailyPlanRequest):
    report = daily_plan([item.model_dump() for item in payload.spreads])
    if report["overbooked"]:
        logger.warning("Plan overbooks %s", ", ".join(report["overbooked"]))
    return report


@app.get("/summary", response_model=SummaryResponse)
def get_summary(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return week_summary(db, clock())


@app.get("/available", response_model=AvailableResponse)
def get_available(
    category: str,
    subcategory: Optional[str] = None,
    db: Session = Depends(get_db),
    clock: Callable[[], float] = Depends(get_clock),
):
    available = available_time(db, clock(), category, subcategory)
    return AvailableResponse(
        category=category,
        subcategory=subcategory,
        available=available,
        available_label=format_duration(available),
    )


@app.post("/reallocations", response_model=BudgetResponse)
def post_reallocation(
    payload: ReallocationRequest,
    db: Session = Depends(get_db),
    clock: Callable[[], float] = Depends(get_clock),
):
    budget = reallocate(db, clock(), payload.model_dump())
    logger.info(
        "Moved %s min from %s/%s to %s/%s",
        payload.amount,
        payload.from_category or "unallocated",
        payload.from_subcategory or "-",
        payload.to_category,
        payload.to_subcategory or "-",
    )
    return budget_payload(budget_to_dict(budget), get_unallocated_time(budget))


@app.get("/chart", response_model=List[ChartSliceResponse])
def get_chart(db: Session = Depends(get_db), clock: Callable[[], float] = Depends(get_clock)):
    return budget_chart(db, clock())


@app.get("/export")
def export_entries(
    format: Literal["csv", "xlsx"] = Query(default="csv"),
    db: Session = Depends(get_db),
):
    entries = TimeEntryStore(db).all()
    if format == "xlsx":
        return Response(
            content=export_xlsx(entries, settings.timezone),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": 'attachment; filename="time_entries.xlsx"'},
        )
    return Response(
        content=export_csv(entries, settings.timezone),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="time_entries.csv"'},
    )
