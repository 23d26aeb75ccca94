"""Session and break lifecycle.

Per user the entry moves through::

    no session --clock_in--> active --start_break--> on break
    on break --end_break--> active --clock_out--> completed (terminal)

Every mutation is computed on a copy, written with the version it was read
at, and only then returned. A rejected or failed write leaves nothing
changed.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import date, datetime, timezone
from typing import Callable, Optional

from app.core.errors import (
    AlreadyClockedIn,
    BreakAlreadyInProgress,
    BreakInProgress,
    InvalidTimeRange,
    NoActiveSession,
    NoBreakInProgress,
    WriteConflict,
)
from app.db.entry_store import MUTABLE_FIELDS, EntryStore
from app.models.time_entry import (
    Break,
    EntryStatus,
    TimeEntry,
    live_break_minutes,
    live_hours,
    local_date,
    minutes_between,
    to_record,
    total_hours,
    truncate_to_minute,
)
from app.schemas.report_schema import DayTotal
from app.services import reports


logger = logging.getLogger("uvicorn.error")

AUTO_CLOSE = "auto_close"
REJECT = "reject"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimeAccountingService:
    def __init__(
        self,
        store: EntryStore,
        *,
        tz: str = "UTC",
        break_policy: str = AUTO_CLOSE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if break_policy not in {AUTO_CLOSE, REJECT}:
            raise ValueError(f"Unknown clock-out break policy: {break_policy}")
        self.store = store
        self.tz = tz
        self.break_policy = break_policy
        self._clock = clock
        # Single writer per user within this process; a lock lives only while
        # some coroutine holds or waits on it
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def now(self, now: Optional[datetime] = None) -> datetime:
        return truncate_to_minute(now or self._clock())

    def today(self, now: Optional[datetime] = None) -> date:
        return local_date(self.now(now), self.tz)

    async def get_active_entry(self, user_id: str) -> Optional[TimeEntry]:
        return await self.store.find_active(user_id)

    async def _require_active(self, user_id: str) -> TimeEntry:
        entry = await self.store.find_active(user_id)
        if entry is None:
            raise NoActiveSession()
        return entry

    @staticmethod
    def _check_order(entry: TimeEntry, ts: datetime) -> None:
        # Breaks stay chronological sub-intervals of the session
        last = entry.last_event_at
        if ts < last:
            raise InvalidTimeRange(f"{ts.isoformat()} is before the last recorded event at {last.isoformat()}")

    async def _commit(self, current: TimeEntry, updated: TimeEntry) -> TimeEntry:
        record = to_record(updated)
        patch = {k: record[k] for k in MUTABLE_FIELDS}
        try:
            await self.store.update(current.id, patch, expected_version=current.version)
        except WriteConflict:
            logger.warning("Write conflict on time entry %s (user %s)", current.id, current.user_id)
            raise
        return updated.model_copy(update={"version": current.version + 1})

    # ---------------------- Session lifecycle ----------------------

    async def clock_in(self, user_id: str, now: Optional[datetime] = None) -> TimeEntry:
        ts = self.now(now)
        async with self._lock_for(user_id):
            if await self.store.find_active(user_id) is not None:
                raise AlreadyClockedIn()
            entry = TimeEntry(user_id=user_id, date=local_date(ts, self.tz), clock_in_at=ts)
            try:
                entry_id = await self.store.create(entry)
            except WriteConflict as exc:
                # Another process won the race for this user
                raise AlreadyClockedIn() from exc
        logger.info("User %s clocked in (entry %s)", user_id, entry_id)
        return entry.model_copy(update={"id": entry_id})

    async def clock_out(self, user_id: str, now: Optional[datetime] = None) -> TimeEntry:
        ts = self.now(now)
        async with self._lock_for(user_id):
            current = await self._require_active(user_id)
            self._check_order(current, ts)
            updated = current.model_copy(deep=True)
            open_break = updated.open_break
            if open_break is not None:
                if self.break_policy == REJECT:
                    raise BreakInProgress()
                open_break.end_at = ts
                open_break.duration = minutes_between(open_break.start_at, ts)
            updated.clock_out_at = ts
            updated.total_hours = total_hours(updated)
            updated.status = EntryStatus.completed
            saved = await self._commit(current, updated)
        logger.info("User %s clocked out (entry %s, %.2f h)", user_id, saved.id, saved.total_hours)
        return saved

    # ---------------------- Break lifecycle ----------------------

    async def start_break(self, user_id: str, now: Optional[datetime] = None) -> Break:
        ts = self.now(now)
        async with self._lock_for(user_id):
            current = await self._require_active(user_id)
            if current.open_break is not None:
                raise BreakAlreadyInProgress()
            self._check_order(current, ts)
            updated = current.model_copy(deep=True)
            new_break = Break(start_at=ts)
            updated.breaks.append(new_break)
            await self._commit(current, updated)
        logger.info("User %s started a break (entry %s)", user_id, current.id)
        return new_break

    async def end_break(self, user_id: str, now: Optional[datetime] = None) -> Break:
        ts = self.now(now)
        async with self._lock_for(user_id):
            current = await self._require_active(user_id)
            if current.open_break is None:
                raise NoBreakInProgress()
            self._check_order(current, ts)
            updated = current.model_copy(deep=True)
            closing = updated.breaks[-1]
            closing.duration = minutes_between(closing.start_at, ts)
            closing.end_at = ts
            await self._commit(current, updated)
        logger.info("User %s ended a break of %d min (entry %s)", user_id, closing.duration, current.id)
        return closing

    # ---------------------- Reads & aggregation ----------------------

    async def entries(
        self,
        user_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[TimeEntry]:
        return await self.store.query(user_id=user_id, date_from=start, date_to=end)

    async def total_hours_for_date(self, user_id: str, day: date) -> float:
        entries = await self.store.query(user_id=user_id, date_from=day, date_to=day, status=EntryStatus.completed)
        return reports.hours_for_date(entries, user_id, day)

    async def total_hours_for_week(self, user_id: str, week_start: date) -> float:
        start, end = reports.week_range(week_start)
        entries = await self.store.query(user_id=user_id, date_from=start, date_to=end)
        # Filter again so a loose backend can never leak other weeks in
        return reports.hours_in_range(entries, user_id, start, end)

    async def daily_totals(self, user_id: Optional[str], start: date, end: date) -> list[DayTotal]:
        entries = await self.store.query(user_id=user_id, date_from=start, date_to=end)
        return reports.daily_totals(entries, start, end)

    async def dashboard(self, user_id: str, now: Optional[datetime] = None) -> dict:
        ts = self.now(now)
        today = local_date(ts, self.tz)
        week_start = reports.week_start_for(today)
        active = await self.store.find_active(user_id)
        return {
            "today": today,
            "week_start": week_start,
            "today_hours": await self.total_hours_for_date(user_id, today),
            "week_hours": await self.total_hours_for_week(user_id, week_start),
            "active_entry": active,
            "open_break": active.open_break if active else None,
            "live_hours": live_hours(active, ts) if active else 0.0,
            "live_break_minutes": live_break_minutes(active, ts) if active else 0,
        }

    async def summary(self, start: date, end: date) -> dict[str, dict]:
        """Per-user totals across everyone with entries in ``[start, end]``."""
        entries = await self.store.query(date_from=start, date_to=end)
        totals: dict[str, dict] = {}
        for e in entries:
            row = totals.setdefault(e.user_id, {"total_hours": 0.0, "entries": 0, "active": False})
            if e.is_active:
                row["active"] = True
            if e.total_hours is not None:
                row["total_hours"] += e.total_hours
                row["entries"] += 1
        return totals
