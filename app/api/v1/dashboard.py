from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_time_service
from app.core.security import get_current_user
from app.schemas.report_schema import DashboardOut
from app.schemas.time_entry_schema import BreakOut, TimeEntryOut
from app.services.time_service import TimeAccountingService


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
async def dashboard(
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(get_current_user),
):
    now = svc.now()
    stats = await svc.dashboard(current_user["id"], now)
    active = stats["active_entry"]
    open_break = stats["open_break"]
    return DashboardOut(
        today=stats["today"],
        week_start=stats["week_start"],
        today_hours=stats["today_hours"],
        week_hours=stats["week_hours"],
        is_clocked_in=active is not None,
        on_break=open_break is not None,
        live_hours=stats["live_hours"],
        live_break_minutes=stats["live_break_minutes"],
        active_entry=TimeEntryOut.from_entry(active, svc.tz, now=now) if active else None,
        open_break=BreakOut.from_break(open_break, svc.tz) if open_break else None,
    )
