from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_time_service
from app.core.rbac import can_view_user_scope, require_admin
from app.core.security import get_current_user
from app.schemas.time_entry_schema import BreakOut, TimeEntryOut, TimeEntryListOut
from app.services.time_service import TimeAccountingService


router = APIRouter(prefix="/time", tags=["time"])


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="'from' must not be after 'to'")


def _entry_out(svc: TimeAccountingService, entry) -> TimeEntryOut:
    return TimeEntryOut.from_entry(entry, svc.tz, now=svc.now())


# ---------------------- Session & breaks ----------------------


@router.post("/clock-in", response_model=TimeEntryOut)
async def clock_in(svc: TimeAccountingService = Depends(get_time_service), current_user=Depends(get_current_user)):
    entry = await svc.clock_in(current_user["id"])
    return _entry_out(svc, entry)


@router.post("/clock-out", response_model=TimeEntryOut)
async def clock_out(svc: TimeAccountingService = Depends(get_time_service), current_user=Depends(get_current_user)):
    entry = await svc.clock_out(current_user["id"])
    return _entry_out(svc, entry)


@router.post("/break/start", response_model=BreakOut)
async def break_start(svc: TimeAccountingService = Depends(get_time_service), current_user=Depends(get_current_user)):
    b = await svc.start_break(current_user["id"])
    return BreakOut.from_break(b, svc.tz)


@router.post("/break/end", response_model=BreakOut)
async def break_end(svc: TimeAccountingService = Depends(get_time_service), current_user=Depends(get_current_user)):
    b = await svc.end_break(current_user["id"])
    return BreakOut.from_break(b, svc.tz)


@router.get("/active", response_model=Optional[TimeEntryOut])
async def active_entry(svc: TimeAccountingService = Depends(get_time_service), current_user=Depends(get_current_user)):
    entry = await svc.get_active_entry(current_user["id"])
    return _entry_out(svc, entry) if entry else None


# ---------------------- Listings ----------------------


@router.get("/entries/me", response_model=TimeEntryListOut)
async def my_time_entries(
    from_: Optional[date] = Query(None, alias="from"),
    to: Optional[date] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(get_current_user),
):
    _check_range(from_, to)
    entries = await svc.entries(current_user["id"], from_, to)
    total = len(entries)
    if limit:
        entries = entries[:limit]
    return {"items": [_entry_out(svc, e) for e in entries], "total": total}


@router.get("/entries", response_model=TimeEntryListOut)
async def all_time_entries(
    user_id: Optional[str] = Query(None),
    from_: Optional[date] = Query(None, alias="from"),
    to: Optional[date] = Query(None),
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(require_admin),
):
    """Admin: entries across users; the input an export adapter consumes."""
    _check_range(from_, to)
    entries = await svc.entries(user_id, from_, to)
    return {"items": [_entry_out(svc, e) for e in entries], "total": len(entries)}


@router.get("/entries/user/{user_id}", response_model=TimeEntryListOut)
async def user_time_entries(
    user_id: str,
    from_: Optional[date] = Query(None, alias="from"),
    to: Optional[date] = Query(None),
    svc: TimeAccountingService = Depends(get_time_service),
    current_user=Depends(get_current_user),
):
    if not can_view_user_scope(current_user, user_id):
        raise HTTPException(status_code=403, detail="Forbidden")
    _check_range(from_, to)
    entries = await svc.entries(user_id, from_, to)
    return {"items": [_entry_out(svc, e) for e in entries], "total": len(entries)}
