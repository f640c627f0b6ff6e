# booking_engine/schemas/availability.py
from pydantic import BaseModel, Field, conint
from typing import Dict, List, Optional
from datetime import date as Date

from booking_engine.scheduling.time_utils import TIME_PATTERN


# --- Business hours ---
class BusinessHoursUpsert(BaseModel):
    open_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    close_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    is_active: Optional[bool] = True


class BusinessHoursResponse(BusinessHoursUpsert):
    id: int
    weekday: conint(ge=0, le=6) = Field(..., description="0=Sun, 1=Mon, …, 6=Sat")

    class Config:
        from_attributes = True


# --- Holidays ---
class HolidayCreate(BaseModel):
    date: Date
    name: str
    description: Optional[str] = None
    is_recurring: Optional[bool] = False


class HolidayResponse(HolidayCreate):
    id: int

    class Config:
        from_attributes = True


# --- Blocked intervals ---
class BlockedIntervalCreate(BaseModel):
    date: Date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    reason: Optional[str] = None


class BlockedIntervalResponse(BlockedIntervalCreate):
    id: int

    class Config:
        from_attributes = True


class BufferSetting(BaseModel):
    buffer_minutes: conint(ge=0, le=720)


# --- Availability queries ---
class AvailableSlotsResponse(BaseModel):
    service_id: int
    date: Date
    slots: List[str]


class SlotCheckResponse(BaseModel):
    service_id: int
    date: Date
    time: str
    available: bool


class AvailabilityRangeResponse(BaseModel):
    service_id: int
    days: Dict[Date, List[str]]


class NextSlot(BaseModel):
    date: Date
    time: str
    datetime: str  # "YYYY-MM-DD HH:MM"


class AvailabilityStats(BaseModel):
    total_slots: int
    available_slots: int
    booked_slots: int
    occupancy_rate: float  # percent, 0..100
