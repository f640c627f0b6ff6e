"""
Error taxonomy for the booking engine and its mapping to HTTP.

Input errors (bad "HH:MM", inverted intervals) are programmer/caller faults.
Business rejections (inactive service, slot outside hours, slot taken, bad
status transition) are expected outcomes the caller shows to the user.
Storage faults are not wrapped here; they propagate as SQLAlchemy raised them.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BookingEngineError(Exception):
    """Base class. `code` is a stable machine-readable identifier."""

    code = "booking_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class InvalidTimeFormat(BookingEngineError, ValueError):
    code = "invalid_time_format"


class InvalidInterval(BookingEngineError, ValueError):
    code = "invalid_interval"


class ServiceUnavailable(BookingEngineError):
    code = "service_unavailable"


class SlotOutsideHours(BookingEngineError):
    code = "slot_outside_hours"


class SlotAlreadyBooked(BookingEngineError):
    code = "slot_already_booked"


class InvalidTransition(BookingEngineError):
    code = "invalid_transition"


class AppointmentNotFound(BookingEngineError):
    code = "appointment_not_found"


class ScheduleNotFound(BookingEngineError):
    code = "schedule_not_found"


class HolidayNotFound(BookingEngineError):
    code = "holiday_not_found"


class ScheduleInUse(BookingEngineError):
    code = "schedule_in_use"


# ---------------------------------------------------------------------------
# HTTP status per error type. First match wins, so subclasses go first.
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_UNPROCESSABLE = 422

BOOKING_ERROR_RULES: list[tuple[type[BookingEngineError], int]] = [
    (InvalidTimeFormat, STATUS_BAD_REQUEST),
    (InvalidInterval, STATUS_BAD_REQUEST),
    (ServiceUnavailable, STATUS_NOT_FOUND),
    (AppointmentNotFound, STATUS_NOT_FOUND),
    (ScheduleNotFound, STATUS_NOT_FOUND),
    (HolidayNotFound, STATUS_NOT_FOUND),
    (SlotOutsideHours, STATUS_UNPROCESSABLE),
    (SlotAlreadyBooked, STATUS_CONFLICT),
    (InvalidTransition, STATUS_CONFLICT),
    (ScheduleInUse, STATUS_CONFLICT),
]


def booking_error_to_http(exc: BookingEngineError) -> HTTPException:
    """
    Map an engine exception into an HTTPException whose detail carries both
    the stable code and the human message, so clients can tell
    "someone just took that slot" apart from "that slot was never valid".
    """
    detail = {"code": exc.code, "message": exc.message}
    for exc_type, status_code in BOOKING_ERROR_RULES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=STATUS_BAD_REQUEST, detail=detail)
