# booking_engine/api/routes/schedules.py
from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import List, Optional

from booking_engine.api.deps import get_booking_engine
from booking_engine.scheduling.booking import BookingEngine
from booking_engine.schemas.schedule import (
    ScheduleGenerate,
    ScheduleGenerateResponse,
    ScheduleResponse,
    ScheduleUpdate,
)

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post("/generate", response_model=ScheduleGenerateResponse, status_code=201)
def generate_schedules(
    payload: ScheduleGenerate,
    engine: BookingEngine = Depends(get_booking_engine),
):
    """
    Materialise the bookable slots of a date range as Schedule rows.
    Rows that already exist are left alone, so the call can be repeated.
    """
    created = engine.generate_schedules(payload.service_id, payload.start_date, payload.end_date)
    return {"service_id": payload.service_id, "created": created}


@router.get("", response_model=List[ScheduleResponse])
def list_schedules(
    service_id: int = Query(...),
    on_date: Optional[date] = Query(None, alias="date"),
    available: bool = Query(False, description="Only enabled rows with no active appointment"),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.list_schedules(service_id, on_date, available_only=available)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(schedule_id: int, engine: BookingEngine = Depends(get_booking_engine)):
    return engine.get_schedule(schedule_id)


@router.patch("/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.set_schedule_available(schedule_id, payload.is_available)


@router.delete("/{schedule_id}")
def delete_schedule(schedule_id: int, engine: BookingEngine = Depends(get_booking_engine)):
    engine.delete_schedule(schedule_id)
    return {"ok": True, "schedule_id": schedule_id}
