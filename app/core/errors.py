"""Error taxonomy for time tracking.

Every error is per-operation: the request is rejected, nothing is applied,
and the caller gets a ``code`` it can branch on.
"""

from fastapi import status


class TimeTrackingError(Exception):
    code = "time_tracking_error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Time tracking operation rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


# ---------------------- Domain rule violations ----------------------


class AlreadyClockedIn(TimeTrackingError):
    code = "already_clocked_in"
    status_code = status.HTTP_409_CONFLICT
    message = "Already clocked in"


class NoActiveSession(TimeTrackingError):
    code = "no_active_session"
    status_code = status.HTTP_409_CONFLICT
    message = "No active time entry"


class BreakAlreadyInProgress(TimeTrackingError):
    code = "break_already_in_progress"
    status_code = status.HTTP_409_CONFLICT
    message = "Already on a break"


class NoBreakInProgress(TimeTrackingError):
    code = "no_break_in_progress"
    status_code = status.HTTP_409_CONFLICT
    message = "Not currently on a break"


class BreakInProgress(TimeTrackingError):
    code = "break_in_progress"
    status_code = status.HTTP_409_CONFLICT
    message = "End the current break before clocking out"


class InvalidTimeRange(TimeTrackingError):
    code = "invalid_time_range"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "End time is before start time"


# ---------------------- Storage ----------------------


class StoreError(TimeTrackingError):
    code = "store_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Storage error"


class NotFound(StoreError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Record not found"


class WriteConflict(StoreError):
    code = "write_conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Record was modified concurrently, retry the operation"


class StoreUnavailable(StoreError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Storage is unavailable"


# ---------------------- Identity ----------------------


class InvalidUsername(TimeTrackingError):
    code = "invalid_username"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Username must be a handle or a valid email address"
