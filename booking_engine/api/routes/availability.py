# booking_engine/api/routes/availability.py
from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import List, Optional

from booking_engine.api.deps import get_booking_engine
from booking_engine.scheduling.booking import BookingEngine
from booking_engine.schemas.availability import (
    AvailabilityRangeResponse,
    AvailabilityStats,
    AvailableSlotsResponse,
    NextSlot,
    SlotCheckResponse,
)

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/services/{service_id}/slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    service_id: int,
    on_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """
    Free slot start times ("HH:MM") for the service on a date.
    A snapshot: a slot listed here can still be taken before it is booked.
    """
    slots = engine.get_available_slots(service_id, on_date)
    return {"service_id": service_id, "date": on_date, "slots": slots}


@router.get("/services/{service_id}/check", response_model=SlotCheckResponse)
def check_slot(
    service_id: int,
    on_date: date = Query(..., alias="date"),
    time: str = Query(..., description="HH:MM"),
    engine: BookingEngine = Depends(get_booking_engine),
):
    available = engine.is_slot_available(service_id, on_date, time)
    return {"service_id": service_id, "date": on_date, "time": time, "available": available}


@router.get("/services/{service_id}/range", response_model=AvailabilityRangeResponse)
def get_availability_range(
    service_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    engine: BookingEngine = Depends(get_booking_engine),
):
    days = engine.get_availability_range(service_id, start_date, end_date)
    return {"service_id": service_id, "days": days}


@router.get("/services/{service_id}/next", response_model=List[NextSlot])
def get_next_available_slots(
    service_id: int,
    limit: int = Query(10, ge=1, le=100),
    from_date: Optional[date] = Query(None),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.get_next_available_slots(service_id, limit=limit, from_date=from_date)


@router.get("/stats", response_model=AvailabilityStats)
def get_availability_stats(
    start_date: date = Query(...),
    end_date: date = Query(...),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.get_availability_stats(start_date, end_date)
