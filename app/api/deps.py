from typing import Optional

from app.core.config import settings
from app.db.stores import get_entry_store
from app.services.time_service import TimeAccountingService


_time_service: Optional[TimeAccountingService] = None


def get_time_service() -> TimeAccountingService:
    global _time_service
    if _time_service is None:
        _time_service = TimeAccountingService(
            get_entry_store(),
            tz=settings.TIMEZONE,
            break_policy=settings.CLOCK_OUT_BREAK_POLICY,
        )
    return _time_service


def reset_time_service() -> None:
    global _time_service
    _time_service = None
