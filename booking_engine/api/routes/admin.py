# booking_engine/api/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from datetime import date
from typing import List

from booking_engine.api.deps import get_booking_engine, get_repository
from booking_engine.core.errors import HolidayNotFound
from booking_engine.db.models.availability import Holiday
from booking_engine.db.repository import SqlAlchemyBookingRepository
from booking_engine.scheduling.booking import BUFFER_SETTING_KEY, BookingEngine
from booking_engine.scheduling.calendar import OperatingWindow
from booking_engine.schemas.availability import (
    BlockedIntervalCreate,
    BlockedIntervalResponse,
    BufferSetting,
    BusinessHoursResponse,
    BusinessHoursUpsert,
    HolidayCreate,
    HolidayResponse,
)

router = APIRouter(prefix="/calendar", tags=["calendar"])


# -------------------------
# Business hours (one row per weekday, 0 = Sunday)
# -------------------------
@router.get("/business-hours", response_model=List[BusinessHoursResponse])
def list_business_hours(repository: SqlAlchemyBookingRepository = Depends(get_repository)):
    return repository.list_business_hours()


@router.put("/business-hours/{weekday}", response_model=BusinessHoursResponse)
def upsert_business_hours(
    payload: BusinessHoursUpsert,
    weekday: int = Path(..., ge=0, le=6, description="0=Sun, 1=Mon, …, 6=Sat"),
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    # raises InvalidInterval when open >= close
    OperatingWindow.from_strings(payload.open_time, payload.close_time)
    return repository.upsert_business_hours(
        weekday, payload.open_time, payload.close_time, bool(payload.is_active)
    )


# -------------------------
# Holidays
# -------------------------
@router.get("/holidays", response_model=List[HolidayResponse])
def list_holidays(repository: SqlAlchemyBookingRepository = Depends(get_repository)):
    return repository.list_holidays()


@router.post("/holidays", response_model=HolidayResponse, status_code=201)
def create_holiday(
    payload: HolidayCreate,
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    if repository.get_holiday(payload.date):
        raise HTTPException(status_code=409, detail="A holiday already exists on this date")
    holiday = Holiday(
        date=payload.date,
        name=payload.name,
        description=payload.description,
        is_recurring=bool(payload.is_recurring),
    )
    return repository.add_holiday(holiday)


@router.delete("/holidays/{holiday_id}")
def delete_holiday(
    holiday_id: int,
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    if not repository.delete_holiday(holiday_id):
        raise HolidayNotFound(f"Holiday {holiday_id} not found")
    return {"ok": True, "holiday_id": holiday_id}


# -------------------------
# Blocked intervals
# -------------------------
@router.get("/blocks", response_model=List[BlockedIntervalResponse])
def list_blocks(
    on_date: date = Query(..., alias="date"),
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    return repository.list_blocked_intervals(on_date)


@router.post("/blocks", response_model=BlockedIntervalResponse, status_code=201)
def block_interval(
    payload: BlockedIntervalCreate,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.block_interval(payload.date, payload.start_time, payload.end_time, payload.reason)


@router.delete("/blocks")
def unblock_interval(
    on_date: date = Query(..., alias="date"),
    start_time: str = Query(..., description="HH:MM"),
    engine: BookingEngine = Depends(get_booking_engine),
):
    removed = engine.unblock_interval(on_date, start_time)
    return {"ok": True, "removed": removed}


# -------------------------
# Buffer between consecutive slots
# -------------------------
@router.get("/buffer", response_model=BufferSetting)
def get_buffer(engine: BookingEngine = Depends(get_booking_engine)):
    return {"buffer_minutes": engine.buffer_minutes()}


@router.put("/buffer", response_model=BufferSetting)
def set_buffer(
    payload: BufferSetting,
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    repository.set_setting(BUFFER_SETTING_KEY, str(payload.buffer_minutes))
    return payload
