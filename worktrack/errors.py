from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class EngineError(ApiError):
    """A lifecycle rule rejected the operation; nothing was written."""

    status_code = 409
    code = "ENGINE_ERROR"
    default_message = "Operation rejected."

    def __init__(self, message: str | None = None):
        super().__init__(
            status_code=type(self).status_code,
            code=type(self).code,
            message=message or type(self).default_message,
        )


class AlreadyCheckedIn(EngineError):
    code = "ALREADY_CHECKED_IN"
    default_message = "Attendance already recorded for today."


class NoActiveCheckIn(EngineError):
    status_code = 404
    code = "NO_ACTIVE_CHECKIN"
    default_message = "No attendance record found for today."


class AlreadyCheckedOut(EngineError):
    code = "ALREADY_CHECKED_OUT"
    default_message = "Already checked out for today."


class RecordAlreadyClosed(EngineError):
    code = "RECORD_ALREADY_CLOSED"
    default_message = "Attendance record is closed after check-out."


class IntervalAlreadyOpen(EngineError):
    code = "INTERVAL_ALREADY_OPEN"
    default_message = "An interval is already open."


class NoOpenInterval(EngineError):
    code = "NO_OPEN_INTERVAL"
    default_message = "There is no open interval to close."


class InvalidRange(EngineError):
    status_code = 422
    code = "INVALID_RANGE"
    default_message = "Start must not be after end."


class OverlappingLeave(EngineError):
    code = "OVERLAPPING_LEAVE"
    default_message = "You already have a leave request for these dates."


class NotFound(EngineError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Record not found."


class NotEditable(EngineError):
    code = "NOT_EDITABLE"
    default_message = "Only pending leave requests can be edited."


class NotDeletable(EngineError):
    code = "NOT_DELETABLE"
    default_message = "Only pending leave requests can be deleted."


class Forbidden(EngineError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Insufficient permissions."


class InvalidTransition(EngineError):
    code = "INVALID_TRANSITION"
    default_message = "Leave request status does not allow this action."


class StaleRecord(EngineError):
    code = "STALE_RECORD"
    default_message = "Record changed since it was read; reload and retry."


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
