from pydantic import BaseModel, EmailStr, Field
from datetime import date as Date, datetime
from typing import Annotated, Literal, Optional, Union

from booking_engine.db.models.appointment import AppointmentStatus
from booking_engine.scheduling.time_utils import TIME_PATTERN


class BookerInfo(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


# --- CREATE: either an inline (date, time) pair or a pre-generated schedule row ---
class InlineBookingRequest(BaseModel):
    kind: Literal["inline"] = "inline"
    service_id: int
    date: Date
    start_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    booker: BookerInfo


class ScheduleBookingRequest(BaseModel):
    kind: Literal["schedule"] = "schedule"
    schedule_id: int
    booker: BookerInfo


BookingRequest = Annotated[
    Union[InlineBookingRequest, ScheduleBookingRequest],
    Field(discriminator="kind"),
]


# --- UPDATE ---
class StatusUpdate(BaseModel):
    status: AppointmentStatus = Field(
        ...,
        description="Allowed values: SCHEDULED, PENDING, CONFIRMED, COMPLETED, CANCELLED",
    )


# --- RESPONSE ---
class AppointmentResponse(BaseModel):
    id: int
    service_id: int
    schedule_id: Optional[int]
    date: Date
    start_time: str
    end_time: str
    status: AppointmentStatus
    client_name: Optional[str]
    client_email: Optional[str]
    client_phone: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
