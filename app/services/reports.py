"""Aggregation over time entries.

Pure functions: callers fetch the entries, these only add them up.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from app.models.time_entry import TimeEntry
from app.schemas.report_schema import DayTotal


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_range(week_start: date) -> tuple[date, date]:
    return week_start, week_start + timedelta(days=6)


def sum_hours(entries: Iterable[TimeEntry]) -> float:
    # Active entries have no total yet and are skipped
    return sum(e.total_hours for e in entries if e.total_hours is not None)


def hours_for_date(entries: Iterable[TimeEntry], user_id: str, day: date) -> float:
    return sum_hours(e for e in entries if e.user_id == user_id and e.date == day)


def hours_in_range(entries: Iterable[TimeEntry], user_id: str, start: date, end: date) -> float:
    return sum_hours(e for e in entries if e.user_id == user_id and start <= e.date <= end)


def daily_totals(entries: Iterable[TimeEntry], start: date, end: date) -> list[DayTotal]:
    days: dict[date, DayTotal] = {}
    current = start
    while current <= end:
        days[current] = DayTotal(date=current, total_hours=0.0, entries=0)
        current += timedelta(days=1)
    for e in entries:
        row = days.get(e.date)
        if row is None or e.total_hours is None:
            continue
        row.total_hours += e.total_hours
        row.entries += 1
    return [days[d] for d in sorted(days)]
