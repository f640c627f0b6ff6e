# booking_engine/api/routes/bookings.py
from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query
from datetime import date
from typing import Annotated, List, Optional, Union

from booking_engine.api.deps import get_booking_engine, get_repository
from booking_engine.core.errors import AppointmentNotFound
from booking_engine.db.models.appointment import AppointmentStatus
from booking_engine.db.repository import SqlAlchemyBookingRepository
from booking_engine.scheduling.booking import BookingEngine
from booking_engine.schemas.booking import (
    AppointmentResponse,
    InlineBookingRequest,
    ScheduleBookingRequest,
    StatusUpdate,
)
from booking_engine.services.notifications import (
    EVENT_BOOKED,
    EVENT_STATUS_CHANGED,
    appointment_payload,
    dispatch_appointment_event,
)

router = APIRouter(prefix="/appointments", tags=["appointments"])

BookingBody = Annotated[
    Union[InlineBookingRequest, ScheduleBookingRequest],
    Body(discriminator="kind"),
]


# Staff / authenticated flow: lands in SCHEDULED

@router.post("", response_model=AppointmentResponse, status_code=201)
def create_appointment(
    booking: BookingBody,
    background_tasks: BackgroundTasks,
    engine: BookingEngine = Depends(get_booking_engine),
):
    appointment = engine.book(booking)
    background_tasks.add_task(dispatch_appointment_event, EVENT_BOOKED, appointment_payload(appointment))
    return appointment


# Public guest flow: lands in the configured guest status (CONFIRMED or PENDING)

@router.post("/guest", response_model=AppointmentResponse, status_code=201)
def create_guest_appointment(
    booking: BookingBody,
    background_tasks: BackgroundTasks,
    engine: BookingEngine = Depends(get_booking_engine),
):
    appointment = engine.book_guest(booking)
    background_tasks.add_task(dispatch_appointment_event, EVENT_BOOKED, appointment_payload(appointment))
    return appointment


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    on_date: Optional[date] = Query(None, alias="date"),
    service_id: Optional[int] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    offset = (page - 1) * per_page
    return repository.list_appointments(
        on_date=on_date,
        service_id=service_id,
        status=status.value if status else None,
        limit=per_page,
        offset=offset,
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    appointment = repository.get_appointment(appointment_id)
    if not appointment:
        raise AppointmentNotFound(f"Appointment {appointment_id} not found")
    return appointment


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    engine: BookingEngine = Depends(get_booking_engine),
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
):
    current = repository.get_appointment(appointment_id)
    previous_status = current.status if current else None
    appointment = engine.update_status(appointment_id, payload.status)
    # same-status requests are no-ops and notify nobody
    if appointment.status != previous_status:
        background_tasks.add_task(
            dispatch_appointment_event, EVENT_STATUS_CHANGED, appointment_payload(appointment)
        )
    return appointment
