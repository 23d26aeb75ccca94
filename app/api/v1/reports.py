from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_time_service
from app.core.rbac import can_view_user_scope, require_admin
from app.core.security import get_current_user
from app.db.stores import get_user_store
from app.db.user_store import UserStore
from app.schemas.report_schema import DayReport, RangeReport, SummaryReport, UserTotal, WeekReport
from app.schemas.time_entry_schema import TimeEntryOut
from app.services import reports
from app.services.time_service import TimeAccountingService


router = APIRouter(prefix="/reports", tags=["reports"])

# Guard against accidental multi-year scans
MAX_RANGE_DAYS = 366


def _target_user(current_user: dict, user_id: Optional[str]) -> str:
    target = user_id or current_user["id"]
    if not can_view_user_scope(current_user, target):
        raise HTTPException(status_code=403, detail="Forbidden")
    return target


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise HTTPException(status_code=400, detail="'from' must not be after 'to'")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Range must be shorter than {MAX_RANGE_DAYS} days")


@router.get("/day", response_model=DayReport)
async def day_report(
    day: Optional[date] = Query(None, alias="date"),
    user_id: Optional[str] = Query(None),
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(get_current_user),
):
    target = _target_user(current_user, user_id)
    day = day or svc.today()
    entries = await svc.entries(target, day, day)
    now = svc.now()
    return DayReport(
        user_id=target,
        date=day,
        total_hours=await svc.total_hours_for_date(target, day),
        entries=[TimeEntryOut.from_entry(e, svc.tz, now=now) for e in entries],
    )


@router.get("/week", response_model=WeekReport)
async def week_report(
    week_start: Optional[date] = Query(None, description="Any day of the week; snapped to Monday"),
    user_id: Optional[str] = Query(None),
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(get_current_user),
):
    target = _target_user(current_user, user_id)
    start, end = reports.week_range(reports.week_start_for(week_start or svc.today()))
    return WeekReport(
        user_id=target,
        week_start=start,
        week_end=end,
        total_hours=await svc.total_hours_for_week(target, start),
        days=await svc.daily_totals(target, start, end),
    )


@router.get("/range", response_model=RangeReport)
async def range_report(
    from_: date = Query(..., alias="from"),
    to: date = Query(...),
    user_id: Optional[str] = Query(None),
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(get_current_user),
):
    _check_range(from_, to)
    target = _target_user(current_user, user_id)
    entries = await svc.entries(target, from_, to)
    now = svc.now()
    return RangeReport(
        user_id=target,
        start=from_,
        end=to,
        total_hours=reports.sum_hours(entries),
        days=reports.daily_totals(entries, from_, to),
        entries=[TimeEntryOut.from_entry(e, svc.tz, now=now) for e in entries],
    )


@router.get("/summary", response_model=SummaryReport)
async def summary_report(
    from_: Optional[date] = Query(None, alias="from"),
    to: Optional[date] = Query(None),
    svc: TimeAccountingService = Depends(get_time_service),
    users: UserStore = Depends(get_user_store),
    current_user=Depends(require_admin),
):
    """Admin: hours per user over a range (defaults to the current week)."""
    week_start, week_end = reports.week_range(reports.week_start_for(svc.today()))
    start = from_ or week_start
    end = to or week_end
    _check_range(start, end)
    totals = await svc.summary(start, end)
    rows: list[UserTotal] = []
    for u in await users.list():
        t = totals.pop(u.id, None) or {"total_hours": 0.0, "entries": 0, "active": False}
        rows.append(UserTotal(user_id=u.id, username=u.username, name=u.name, **t))
    # Entries whose owner no longer exists
    for uid, t in totals.items():
        rows.append(UserTotal(user_id=uid, **t))
    return SummaryReport(start=start, end=end, total_hours=sum(r.total_hours for r in rows), users=rows)
