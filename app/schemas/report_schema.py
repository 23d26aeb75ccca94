from __future__ import annotations

from datetime import date as _date
from typing import Optional

from pydantic import BaseModel

from .time_entry_schema import BreakOut, TimeEntryOut


class DayTotal(BaseModel):
    date: _date
    total_hours: float
    entries: int


class DayReport(BaseModel):
    user_id: str
    date: _date
    total_hours: float
    entries: list[TimeEntryOut]


class WeekReport(BaseModel):
    user_id: str
    week_start: _date
    week_end: _date
    total_hours: float
    days: list[DayTotal]


class RangeReport(BaseModel):
    user_id: Optional[str] = None
    start: _date
    end: _date
    total_hours: float
    days: list[DayTotal]
    entries: list[TimeEntryOut]


class UserTotal(BaseModel):
    user_id: str
    username: Optional[str] = None
    name: Optional[str] = None
    total_hours: float
    entries: int
    active: bool = False


class SummaryReport(BaseModel):
    start: _date
    end: _date
    total_hours: float
    users: list[UserTotal]


class DashboardOut(BaseModel):
    today: _date
    week_start: _date
    today_hours: float
    week_hours: float
    is_clocked_in: bool
    on_break: bool
    live_hours: float = 0.0
    live_break_minutes: int = 0
    active_entry: Optional[TimeEntryOut] = None
    open_break: Optional[BreakOut] = None
