"""Timer lifecycle: starting, stopping, switching and splitting time entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .errors import InvalidSplitError
from .models import TimeEntry
from .store import TimeEntryStore
from .timeutils import DAY, SECOND, now_minutes

logger = logging.getLogger(__name__)

CONCURRENT_WINDOW = 30 * SECOND
STALE_AFTER = 1 * DAY


@dataclass(slots=True)
class SplitEntry:
    """One proposed entry of a retroactive split."""

    category: str
    subcategory: str
    start_time: float
    is_concurrent: bool = False
    end_time: Optional[float] = None


class TimerManager:
    """Drives time entries through idle -> running -> stopped.

    The store, clock and policy are all passed in; the manager keeps no state
    of its own between calls.
    """

    def __init__(
        self,
        store: TimeEntryStore,
        clock: Callable[[], float] = now_minutes,
        concurrent_window: float = CONCURRENT_WINDOW,
        stale_after: float = STALE_AFTER,
        single_running: bool = False,
    ):
        self.store = store
        self.clock = clock
        self.concurrent_window = concurrent_window
        self.stale_after = stale_after
        self.single_running = single_running

    def active_timer(self) -> Optional[TimeEntry]:
        """Most recently inserted entry, running or not."""
        return self.store.last()

    def active_timers(self) -> List[TimeEntry]:
        return self.store.running()

    def start_new_task(self, category: str, subcategory: str) -> TimeEntry:
        now = self.clock()
        if self.single_running:
            for entry in self.store.running():
                self._stop(entry, now)
        entry_id = self.store.add(category, subcategory, start_time=now)
        logger.info("Started %s/%s (entry %s)", category, subcategory, entry_id)
        return self.store.get(entry_id)

    def _stop(self, entry: TimeEntry, now: float) -> TimeEntry:
        if entry.duration is not None:
            # Re-stopping overwrites the recorded duration.
            logger.error("Entry %s was already stopped (duration %s); overwriting", entry.id, entry.duration)
        return self.store.update(entry.id, duration=now - entry.start_time)

    def finish_task(self) -> Optional[TimeEntry]:
        entry = self.store.last()
        if entry is None:
            logger.warning("Stopping nonexistent task; expected only before the first entry is recorded")
            return None
        return self._stop(entry, self.clock())

    def finish_task_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        """Stop one entry, refusing to leave no entry running."""
        entry = self.store.get(entry_id)
        if entry is None:
            logger.warning("Stopping nonexistent entry %s", entry_id)
            return None
        if len(self.store.running()) <= 1:
            logger.warning("Refusing to stop entry %s: at least one task must keep running", entry_id)
            return None
        return self._stop(entry, self.clock())

    def switch_task_concurrent(self, category: str, subcategory: str) -> TimeEntry:
        now = self.clock()
        previous = self.store.last()
        if previous is not None and previous.duration is None:
            recent = now - previous.start_time <= self.concurrent_window
            if recent and not self.single_running:
                logger.info("Entry %s started %.2f min ago; running concurrently", previous.id, now - previous.start_time)
            else:
                self._stop(previous, now)
        return self.start_new_task(category, subcategory)

    def cleanup_long_running_tasks(self) -> List[int]:
        now = self.clock()
        removed: List[int] = []
        for entry in self.store.running():
            if now - entry.start_time > self.stale_after:
                self.store.delete(entry.id)
                removed.append(entry.id)
        if removed:
            logger.warning("Deleted stale running entries: %s", removed)
        return removed

    def split_time(self, split_entries: Sequence[SplitEntry]) -> List[TimeEntry]:
        """Replace every running entry with ``split_entries``.

        A sequential entry lasts until the next entry in the sequence starts;
        the final sequential entry stays running. Concurrent entries use their
        own end time, or stay running without one.
        """
        _validate_split(split_entries)
        for entry in self.store.running():
            self.store.delete(entry.id)

        created: List[TimeEntry] = []
        for index, item in enumerate(split_entries):
            duration: Optional[float]
            if item.is_concurrent:
                duration = None if item.end_time is None else item.end_time - item.start_time
            elif index + 1 < len(split_entries):
                duration = split_entries[index + 1].start_time - item.start_time
            else:
                duration = None
            entry_id = self.store.add(item.category, item.subcategory, item.start_time, duration)
            created.append(self.store.get(entry_id))
        return created


def _validate_split(split_entries: Sequence[SplitEntry]) -> None:
    if not split_entries:
        raise InvalidSplitError("A split needs at least one entry")
    previous_start: Optional[float] = None
    for item in split_entries:
        if not item.category or not item.subcategory:
            raise InvalidSplitError("Split entries need a category and a subcategory")
        if previous_start is not None and item.start_time < previous_start:
            raise InvalidSplitError("Split entries must be ordered by start time")
        if item.end_time is not None:
            if not item.is_concurrent:
                raise InvalidSplitError("Only concurrent split entries may carry an end time")
            if item.end_time < item.start_time:
                raise InvalidSplitError("Split entry ends before it starts")
        previous_start = item.start_time
