from __future__ import annotations

import datetime as dt

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    category = Column(String(100), nullable=False, index=True)
    subcategory = Column(String(100), nullable=False)
    # Minutes since the Unix epoch.
    start_time = Column(Float, nullable=False, index=True)
    # NULL while the entry is running; zero is a valid instantaneous entry.
    duration = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def is_running(self) -> bool:
        return self.duration is None

    @property
    def end_time(self) -> float | None:
        if self.duration is None:
            return None
        return self.start_time + self.duration

    def __repr__(self) -> str:
        return (
            f"TimeEntry(id={self.id!r}, category={self.category!r}, subcategory={self.subcategory!r}, "
            f"start_time={self.start_time!r}, duration={self.duration!r})"
        )


class StoredSetting(Base):
    __tablename__ = "stored_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
