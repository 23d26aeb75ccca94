"""Time entry accounting model.

A ``TimeEntry`` is one clock-in to clock-out session. Timestamps are kept
as full, timezone-aware datetimes truncated to the minute; ``HH:MM`` values
and calendar dates are derived from them in the configured zone.
"""

from __future__ import annotations

from datetime import date as _date, datetime, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from bson import ObjectId
from pydantic import BaseModel, Field

from app.core.errors import InvalidTimeRange


class EntryStatus(str, Enum):
    active = "active"
    completed = "completed"


def new_id() -> str:
    return str(ObjectId())


def as_utc(ts: datetime) -> datetime:
    # Mongo hands back naive UTC datetimes unless the client is tz-aware
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def truncate_to_minute(ts: datetime) -> datetime:
    return as_utc(ts).replace(second=0, microsecond=0)


def local_date(ts: datetime, tz: str = "UTC") -> _date:
    return as_utc(ts).astimezone(ZoneInfo(tz)).date()


def hhmm(ts: Optional[datetime], tz: str = "UTC") -> Optional[str]:
    if ts is None:
        return None
    return as_utc(ts).astimezone(ZoneInfo(tz)).strftime("%H:%M")


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``.

    Works across midnight and across days because both ends are full
    timestamps. A negative span means the clock went backwards and is
    rejected.
    """
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    if seconds < 0:
        raise InvalidTimeRange(f"End time {end.isoformat()} is before start time {start.isoformat()}")
    return int(seconds // 60)


class Break(BaseModel):
    id: str = Field(default_factory=new_id)
    start_at: datetime
    end_at: Optional[datetime] = None
    duration: Optional[int] = None  # minutes, set when the break ends

    @property
    def is_open(self) -> bool:
        return self.end_at is None


class TimeEntry(BaseModel):
    id: Optional[str] = None
    user_id: str
    date: _date
    clock_in_at: datetime
    clock_out_at: Optional[datetime] = None
    breaks: list[Break] = Field(default_factory=list)
    total_hours: Optional[float] = None
    status: EntryStatus = EntryStatus.active
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == EntryStatus.active

    @property
    def open_break(self) -> Optional[Break]:
        # Only the last break may be open
        if self.breaks and self.breaks[-1].is_open:
            return self.breaks[-1]
        return None

    @property
    def break_minutes(self) -> int:
        return sum(b.duration or 0 for b in self.breaks if not b.is_open)

    @property
    def last_event_at(self) -> datetime:
        """Latest recorded timestamp; the next event may not precede it."""
        latest = as_utc(self.clock_in_at)
        if self.breaks:
            last = self.breaks[-1]
            latest = max(latest, as_utc(last.end_at or last.start_at))
        return latest


# ---------------------- Accounting ----------------------


def total_hours(entry: TimeEntry) -> Optional[float]:
    """Stored total for a clocked-out entry; open breaks contribute nothing."""
    if entry.clock_out_at is None:
        return None
    worked = minutes_between(entry.clock_in_at, entry.clock_out_at) - entry.break_minutes
    return worked / 60


def live_break_minutes(entry: TimeEntry, now: datetime) -> int:
    current = entry.open_break
    if current is None:
        return 0
    return minutes_between(current.start_at, max(as_utc(now), as_utc(current.start_at)))


def live_minutes(entry: TimeEntry, now: datetime) -> int:
    """Worked minutes so far, counting an open break as break time.

    Display-only projection; never persisted.
    """
    end = entry.clock_out_at or max(as_utc(now), as_utc(entry.clock_in_at))
    worked = minutes_between(entry.clock_in_at, end) - entry.break_minutes
    if entry.clock_out_at is None:
        worked -= live_break_minutes(entry, now)
    return max(0, worked)


def live_hours(entry: TimeEntry, now: datetime) -> float:
    if not entry.is_active and entry.total_hours is not None:
        return entry.total_hours
    return live_minutes(entry, now) / 60


# ---------------------- Persisted record ----------------------


def to_record(entry: TimeEntry) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "date": entry.date.isoformat(),
        "clock_in_at": entry.clock_in_at,
        "clock_out_at": entry.clock_out_at,
        "breaks": [
            {"id": b.id, "start_at": b.start_at, "end_at": b.end_at, "duration": b.duration}
            for b in entry.breaks
        ],
        "total_hours": entry.total_hours,
        "status": entry.status.value,
        "version": entry.version,
    }


def from_record(record: dict) -> TimeEntry:
    return TimeEntry(
        id=str(record["id"]) if record.get("id") is not None else None,
        user_id=str(record["user_id"]),
        date=_date.fromisoformat(record["date"]),
        clock_in_at=as_utc(record["clock_in_at"]),
        clock_out_at=as_utc(record["clock_out_at"]) if record.get("clock_out_at") else None,
        breaks=[
            Break(
                id=str(b["id"]),
                start_at=as_utc(b["start_at"]),
                end_at=as_utc(b["end_at"]) if b.get("end_at") else None,
                duration=b.get("duration"),
            )
            for b in record.get("breaks", [])
        ],
        total_hours=record.get("total_hours"),
        status=EntryStatus(record.get("status", "active")),
        version=int(record.get("version", 0)),
    )
