from __future__ import annotations

from datetime import date as _date, datetime
from typing import Optional

from pydantic import BaseModel

from app.models.time_entry import Break, TimeEntry, hhmm, live_hours


class BreakOut(BaseModel):
    id: str
    start_at: datetime
    end_at: Optional[datetime] = None
    start_time: str  # HH:MM in the configured timezone
    end_time: Optional[str] = None
    duration: Optional[int] = None

    @classmethod
    def from_break(cls, b: Break, tz: str) -> "BreakOut":
        return cls(
            id=b.id,
            start_at=b.start_at,
            end_at=b.end_at,
            start_time=hhmm(b.start_at, tz),
            end_time=hhmm(b.end_at, tz),
            duration=b.duration,
        )


class TimeEntryOut(BaseModel):
    id: str
    user_id: str
    date: _date
    clock_in_at: datetime
    clock_out_at: Optional[datetime] = None
    clock_in: str
    clock_out: Optional[str] = None
    breaks: list[BreakOut]
    break_minutes: int
    total_hours: Optional[float] = None
    live_hours: Optional[float] = None  # only for active entries
    status: str  # active | completed
    on_break: bool

    @classmethod
    def from_entry(cls, entry: TimeEntry, tz: str, now: Optional[datetime] = None) -> "TimeEntryOut":
        return cls(
            id=entry.id or "",
            user_id=entry.user_id,
            date=entry.date,
            clock_in_at=entry.clock_in_at,
            clock_out_at=entry.clock_out_at,
            clock_in=hhmm(entry.clock_in_at, tz),
            clock_out=hhmm(entry.clock_out_at, tz),
            breaks=[BreakOut.from_break(b, tz) for b in entry.breaks],
            break_minutes=entry.break_minutes,
            total_hours=entry.total_hours,
            live_hours=live_hours(entry, now) if (now is not None and entry.is_active) else None,
            status=entry.status.value,
            on_break=entry.open_break is not None,
        )


class TimeEntryListOut(BaseModel):
    items: list[TimeEntryOut]
    total: int
