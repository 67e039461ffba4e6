"""Persistence for time entries and budget configurations."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .budget import BudgetConfig, budget_from_dict, budget_to_dict, default_budget
from .errors import InvalidBudgetError
from .models import StoredSetting, TimeEntry
from .timeutils import TzLike, is_new_week, now_minutes, week_start

logger = logging.getLogger(__name__)

TEMPLATE_KEY = "global"
WEEKLY_KEY = "week"
WEEK_MARKER_KEY = "week_start"

_UPDATABLE_FIELDS = {"category", "subcategory", "start_time", "duration"}


class TimeEntryStore:
    """Time entries keyed by an auto-incrementing id.

    Every mutating call commits on its own; nothing spans several calls.
    """

    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        category: str,
        subcategory: str,
        start_time: float,
        duration: Optional[float] = None,
    ) -> int:
        entry = TimeEntry(
            category=category,
            subcategory=subcategory,
            start_time=start_time,
            duration=duration,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry.id

    def get(self, entry_id: int) -> Optional[TimeEntry]:
        return self.db.get(TimeEntry, entry_id)

    def update(self, entry_id: int, **fields: Any) -> Optional[TimeEntry]:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        entry = self.get(entry_id)
        if entry is None:
            return None
        for key, value in fields.items():
            setattr(entry, key, value)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def delete(self, entry_id: int) -> bool:
        entry = self.get(entry_id)
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.commit()
        return True

    def query(self, start_after: float) -> List[TimeEntry]:
        return (
            self.db.query(TimeEntry)
            .filter(TimeEntry.start_time > start_after)
            .order_by(TimeEntry.id.asc())
            .all()
        )

    def filter(self, predicate: Callable[[TimeEntry], bool]) -> List[TimeEntry]:
        return [entry for entry in self.all() if predicate(entry)]

    def all(self) -> List[TimeEntry]:
        return self.db.query(TimeEntry).order_by(TimeEntry.id.asc()).all()

    def last(self) -> Optional[TimeEntry]:
        return self.db.query(TimeEntry).order_by(TimeEntry.id.desc()).first()

    def running(self) -> List[TimeEntry]:
        return (
            self.db.query(TimeEntry)
            .filter(TimeEntry.duration.is_(None))
            .order_by(TimeEntry.id.asc())
            .all()
        )


class BudgetStore:
    """Budget template plus the week-scoped working copy.

    Read failures never propagate: a missing or unreadable budget falls back
    to the template, and a missing template falls back to the built-in
    default budget.
    """

    def __init__(self, db: Session, tz: TzLike = None):
        self.db = db
        self.tz = tz

    def _record(self, key: str) -> Optional[StoredSetting]:
        return self.db.query(StoredSetting).filter(StoredSetting.key == key).one_or_none()

    def _read(self, key: str) -> Optional[BudgetConfig]:
        try:
            record = self._record(f"budget.{key}")
            if record is None:
                return None
            return budget_from_dict(json.loads(record.value))
        except (json.JSONDecodeError, InvalidBudgetError, SQLAlchemyError):
            logger.exception("Could not read budget '%s', falling back", key)
            return None

    def _write(self, key: str, value: str) -> None:
        record = self._record(key)
        if record:
            record.value = value
        else:
            self.db.add(StoredSetting(key=key, value=value))

    def load(self, key: str = TEMPLATE_KEY) -> BudgetConfig:
        budget = self._read(key)
        if budget is not None:
            return budget
        if key != TEMPLATE_KEY:
            return self.load(TEMPLATE_KEY)
        return default_budget()

    def save(self, key: str, budget: BudgetConfig) -> bool:
        try:
            self._write(f"budget.{key}", json.dumps(budget_to_dict(budget)))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not save budget '%s'", key)
            return False
        return True

    def week_marker(self) -> Optional[float]:
        try:
            record = self._record(WEEK_MARKER_KEY)
        except SQLAlchemyError:
            logger.exception("Could not read week marker")
            return None
        if record is None or not record.value:
            return None
        try:
            return float(record.value)
        except ValueError:
            logger.warning("Ignoring malformed week marker %r", record.value)
            return None

    def load_weekly(self, now: Optional[float] = None) -> BudgetConfig:
        now = now_minutes() if now is None else now
        if not is_new_week(self.week_marker(), now, self.tz):
            budget = self._read(WEEKLY_KEY)
            if budget is not None:
                return budget
        return self.load(TEMPLATE_KEY)

    def save_weekly(self, budget: BudgetConfig, now: Optional[float] = None) -> bool:
        now = now_minutes() if now is None else now
        try:
            self._write(f"budget.{WEEKLY_KEY}", json.dumps(budget_to_dict(budget)))
            self._write(WEEK_MARKER_KEY, repr(week_start(now, self.tz)))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not save weekly budget")
            return False
        return True

    def reset_weekly(self, now: Optional[float] = None) -> BudgetConfig:
        template = self.load(TEMPLATE_KEY)
        self.save_weekly(template, now)
        return template
