from __future__ import annotations

import datetime as dt
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from timebudget.database import build_engine, get_db, init_schema
from timebudget.main import app, get_clock
from timebudget.store import BudgetStore, TimeEntryStore
from timebudget.timers import TimerManager
from timebudget.timeutils import to_minutes


class FakeClock:
    """Deterministic clock returning minutes since the epoch."""

    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float) -> float:
        self.now += minutes
        return self.now


@pytest.fixture(scope="session")
def temp_db_path() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test.db"
        yield path


@pytest.fixture(scope="session")
def engine(temp_db_path: Path):
    engine = build_engine(temp_db_path)
    init_schema(engine)
    return engine


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionTesting = sessionmaker(bind=connection, autoflush=False, autocommit=False, future=True)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def wednesday() -> float:
    # Wednesday 2024-01-03 12:00 UTC, mid-week in every European timezone.
    return to_minutes(dt.datetime(2024, 1, 3, 12, 0, tzinfo=dt.timezone.utc))


@pytest.fixture()
def clock(wednesday: float) -> FakeClock:
    return FakeClock(wednesday)


@pytest.fixture()
def entry_store(session: Session) -> TimeEntryStore:
    return TimeEntryStore(session)


@pytest.fixture()
def budget_store(session: Session) -> BudgetStore:
    return BudgetStore(session, tz="Europe/Berlin")


@pytest.fixture()
def manager(entry_store: TimeEntryStore, clock: FakeClock) -> TimerManager:
    return TimerManager(entry_store, clock=clock)


@pytest.fixture(scope="function")
def client(session: Session, clock: FakeClock) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
