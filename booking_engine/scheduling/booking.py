"""
Booking Engine

Entry point used by the HTTP layer. Combines the business calendar, the slot
generator and the conflict resolver into availability queries, and owns the
only mutating operations: booking a slot, moving an appointment through its
status machine, and blocking/unblocking time.

A booking is one short transaction: the free-slot re-check and the insert
run together inside BookingRepository.insert_appointment_if_free, and the
store's partial unique index on (service_id, date, start_time) decides
between concurrent claims. Failures are reported, never retried.
"""
import logging
from datetime import date, datetime, timedelta
from itertools import groupby
from typing import Dict, List, Optional

from booking_engine.config import settings
from booking_engine.core.errors import (
    AppointmentNotFound,
    InvalidInterval,
    InvalidTransition,
    ScheduleInUse,
    ScheduleNotFound,
    ServiceUnavailable,
    SlotAlreadyBooked,
    SlotOutsideHours,
)
from booking_engine.db.models.appointment import Appointment, AppointmentStatus
from booking_engine.db.models.availability import BlockedInterval
from booking_engine.db.models.schedule import Schedule
from booking_engine.scheduling.calendar import BusinessCalendar, Closed, OperatingWindow
from booking_engine.scheduling.conflicts import ConflictResolver
from booking_engine.scheduling.slots import generate_slots
from booking_engine.scheduling.time_utils import to_minutes, to_time_string
from booking_engine.schemas.availability import AvailabilityStats, NextSlot
from booking_engine.schemas.booking import BookingRequest, InlineBookingRequest, ScheduleBookingRequest

logger = logging.getLogger(__name__)

BUFFER_SETTING_KEY = "appointment_buffer_minutes"

S = AppointmentStatus

# new status -> statuses it may be reached from
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, frozenset] = {
    S.CONFIRMED: frozenset({S.SCHEDULED, S.PENDING}),
    S.COMPLETED: frozenset({S.CONFIRMED}),
    S.CANCELLED: frozenset({S.SCHEDULED, S.PENDING, S.CONFIRMED}),
    S.SCHEDULED: frozenset(),
    S.PENDING: frozenset(),
}

INITIAL_STATUSES = (S.SCHEDULED, S.PENDING, S.CONFIRMED)


def check_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """
    Returns False when current == new (nothing to do), True when the move is
    legal. Raises InvalidTransition otherwise.
    """
    if current == new:
        return False
    if current not in ALLOWED_TRANSITIONS[new]:
        raise InvalidTransition(f"Cannot move appointment from {current.value} to {new.value}")
    return True


def _days(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


class BookingEngine:
    def __init__(
        self,
        repository,
        buffer_minutes: Optional[int] = None,
        guest_status: Optional[str] = None,
        max_range_days: Optional[int] = None,
        next_slots_max_days: Optional[int] = None,
    ):
        self.repository = repository
        self.calendar = BusinessCalendar(repository)
        self.conflicts = ConflictResolver(repository)
        self._buffer_minutes = buffer_minutes
        self.guest_status = AppointmentStatus(guest_status or settings.guest_booking_status)
        self.max_range_days = max_range_days or settings.availability_max_days
        self.next_slots_max_days = next_slots_max_days or settings.next_slots_max_days

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def buffer_minutes(self) -> int:
        """Constructor value, else the settings table, else the configured default."""
        if self._buffer_minutes is not None:
            return self._buffer_minutes
        stored = self.repository.get_setting(BUFFER_SETTING_KEY)
        if stored is not None:
            try:
                return max(0, int(stored))
            except ValueError:
                logger.warning("Ignoring non-integer %s=%r", BUFFER_SETTING_KEY, stored)
        return settings.appointment_buffer_minutes

    def _active_service(self, service_id: int):
        service = self.repository.get_service(service_id)
        if service is None or not service.is_active:
            raise ServiceUnavailable(f"Service {service_id} not found or inactive")
        return service

    def _candidate_slots(self, service, on_date: date, buffer_minutes: int) -> List[int]:
        resolution = self.calendar.resolve_day(on_date)
        if isinstance(resolution, Closed):
            return []
        return generate_slots(resolution, service.duration_minutes, buffer_minutes)

    def _window_for(self, service, on_date: date, start: int) -> OperatingWindow:
        resolution = self.calendar.resolve_day(on_date)
        if isinstance(resolution, Closed):
            raise SlotOutsideHours(f"Closed on {on_date} ({resolution.reason})")
        if not resolution.fits(start, service.duration_minutes):
            raise SlotOutsideHours(
                f"{to_time_string(start)} + {service.duration_minutes}min is outside opening hours {resolution}"
            )
        return resolution

    def _check_range(self, start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise InvalidInterval("end_date must not be before start_date")
        if (end_date - start_date).days + 1 > self.max_range_days:
            raise InvalidInterval(f"Range is limited to {self.max_range_days} days")

    # ------------------------------------------------------------------
    # availability (read side, snapshot semantics)
    # ------------------------------------------------------------------

    def get_available_slots(self, service_id: int, on_date: date) -> List[str]:
        service = self._active_service(service_id)
        candidates = self._candidate_slots(service, on_date, self.buffer_minutes())
        free = self.conflicts.filter_available(candidates, service, on_date)
        return [to_time_string(m) for m in free]

    def is_slot_available(self, service_id: int, on_date: date, time: str) -> bool:
        start = to_minutes(time)
        service = self.repository.get_service(service_id)
        if service is None or not service.is_active:
            return False
        try:
            self._window_for(service, on_date, start)
        except SlotOutsideHours:
            return False
        return self.conflicts.is_slot_free(service, on_date, start)

    def get_availability_range(self, service_id: int, start_date: date, end_date: date) -> Dict[date, List[str]]:
        self._check_range(start_date, end_date)
        return {day: self.get_available_slots(service_id, day) for day in _days(start_date, end_date)}

    def get_next_available_slots(
        self, service_id: int, limit: Optional[int] = None, from_date: Optional[date] = None
    ) -> List[NextSlot]:
        """Earliest free slots from from_date on, scanning at most next_slots_max_days days."""
        limit = limit or settings.next_slots_default_limit
        now = datetime.now()
        from_date = from_date or now.date()
        found: List[NextSlot] = []
        for offset in range(self.next_slots_max_days):
            day = from_date + timedelta(days=offset)
            slots = self.get_available_slots(service_id, day)
            if day == now.date():
                # today's slots that already started are not bookable
                slots = [s for s in slots if to_minutes(s) >= now.hour * 60 + now.minute]
            for slot in slots:
                found.append(NextSlot(date=day, time=slot, datetime=f"{day.isoformat()} {slot}"))
                if len(found) >= limit:
                    return found
        return found

    def get_availability_stats(self, start_date: date, end_date: date) -> AvailabilityStats:
        self._check_range(start_date, end_date)
        buffer_minutes = self.buffer_minutes()
        total = available = 0
        for service in self.repository.list_active_services():
            for day in _days(start_date, end_date):
                candidates = self._candidate_slots(service, day, buffer_minutes)
                total += len(candidates)
                available += len(self.conflicts.filter_available(candidates, service, day))
        booked = total - available
        return AvailabilityStats(
            total_slots=total,
            available_slots=available,
            booked_slots=booked,
            occupancy_rate=round(booked / total * 100, 2) if total else 0.0,
        )

    # ------------------------------------------------------------------
    # booking (write side)
    # ------------------------------------------------------------------

    def book(self, request: BookingRequest, initial_status: Optional[AppointmentStatus] = None) -> Appointment:
        """
        Claim a slot for request.booker.

        Raises ServiceUnavailable, ScheduleNotFound, SlotOutsideHours or
        SlotAlreadyBooked. initial_status defaults to SCHEDULED; public
        flows pass the configured guest status (CONFIRMED or PENDING).
        """
        status = AppointmentStatus(initial_status or S.SCHEDULED)
        if status not in INITIAL_STATUSES:
            raise ValueError(f"{status.value} is not a valid initial status")

        schedule_id = None
        if isinstance(request, ScheduleBookingRequest):
            schedule = self.get_schedule(request.schedule_id)
            service = self._active_service(schedule.service_id)
            if not schedule.is_available:
                raise SlotOutsideHours(f"Schedule {schedule.id} has been disabled")
            schedule_id = schedule.id
            on_date, start = schedule.date, to_minutes(schedule.start_time)
        elif isinstance(request, InlineBookingRequest):
            service = self._active_service(request.service_id)
            on_date, start = request.date, to_minutes(request.start_time)
        else:
            raise TypeError(f"Unsupported booking request {type(request).__name__}")

        self._window_for(service, on_date, start)

        booker = request.booker
        appointment = Appointment(
            service_id=service.id,
            schedule_id=schedule_id,
            date=on_date,
            start_time=to_time_string(start),
            end_time=to_time_string(start + service.duration_minutes),
            status=status.value,
            client_name=booker.name,
            client_email=booker.email,
            client_phone=booker.phone,
            notes=booker.notes,
        )
        try:
            appointment = self.repository.insert_appointment_if_free(
                appointment, lambda: self.conflicts.is_slot_free(service, on_date, start)
            )
        except SlotAlreadyBooked:
            logger.info(
                "Booking rejected, slot taken: service=%s date=%s start=%s",
                service.id, on_date, to_time_string(start),
            )
            raise

        logger.info(
            "Booked appointment %s: service=%s date=%s %s-%s status=%s",
            appointment.id, service.id, on_date, appointment.start_time, appointment.end_time, appointment.status,
        )
        return appointment

    def book_guest(self, request: BookingRequest) -> Appointment:
        return self.book(request, initial_status=self.guest_status)

    def update_status(self, appointment_id: int, new_status) -> Appointment:
        new_status = AppointmentStatus(new_status)
        appointment = self.repository.get_appointment(appointment_id)
        if appointment is None:
            raise AppointmentNotFound(f"Appointment {appointment_id} not found")

        current = AppointmentStatus(appointment.status)
        if not check_transition(current, new_status):
            return appointment

        appointment.status = new_status.value
        appointment = self.repository.save_appointment(appointment)
        logger.info("Appointment %s: %s -> %s", appointment.id, current.value, new_status.value)
        return appointment

    # ------------------------------------------------------------------
    # administrator-blocked time
    # ------------------------------------------------------------------

    def block_interval(self, on_date: date, start_time: str, end_time: str, reason: Optional[str] = None) -> BlockedInterval:
        if not to_minutes(start_time) < to_minutes(end_time):
            raise InvalidInterval(f"Blocked interval start {start_time} must be before end {end_time}")
        block = self.repository.add_blocked_interval(
            BlockedInterval(date=on_date, start_time=start_time, end_time=end_time, reason=reason)
        )
        logger.info("Blocked %s %s-%s (%s)", on_date, start_time, end_time, reason or "no reason")
        return block

    def unblock_interval(self, on_date: date, start_time: str) -> int:
        to_minutes(start_time)
        removed = self.repository.delete_blocked_intervals(on_date, start_time)
        logger.info("Unblocked %s %s (%d interval(s) removed)", on_date, start_time, removed)
        return removed

    # ------------------------------------------------------------------
    # pre-generated schedule rows
    # ------------------------------------------------------------------

    def generate_schedules(self, service_id: int, start_date: date, end_date: date) -> int:
        if end_date < start_date:
            raise InvalidInterval("end_date must not be before start_date")
        service = self._active_service(service_id)
        buffer_minutes = self.buffer_minutes()
        rows = [
            Schedule(
                service_id=service.id,
                date=day,
                start_time=to_time_string(start),
                end_time=to_time_string(start + service.duration_minutes),
                is_available=True,
            )
            for day in _days(start_date, end_date)
            for start in self._candidate_slots(service, day, buffer_minutes)
        ]
        created = self.repository.add_schedules(rows)
        logger.info(
            "Generated %d schedule row(s) for service %s from %s to %s (%d candidate(s))",
            created, service.id, start_date, end_date, len(rows),
        )
        return created

    def get_schedule(self, schedule_id: int) -> Schedule:
        schedule = self.repository.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFound(f"Schedule {schedule_id} not found")
        return schedule

    def set_schedule_available(self, schedule_id: int, is_available: bool) -> Schedule:
        """Administrator switch; existing appointments on the row are left alone."""
        schedule = self.repository.set_schedule_available(self.get_schedule(schedule_id), is_available)
        logger.info("Schedule %s %s", schedule.id, "enabled" if is_available else "disabled")
        return schedule

    def delete_schedule(self, schedule_id: int) -> None:
        schedule = self.get_schedule(schedule_id)
        if self.repository.count_active_schedule_appointments(schedule.id):
            raise ScheduleInUse(f"Schedule {schedule.id} has an active appointment; cancel it first")
        self.repository.delete_schedule(schedule)
        logger.info("Deleted schedule %s", schedule_id)

    def list_schedules(self, service_id: int, on_date: Optional[date] = None, available_only: bool = False) -> List[Schedule]:
        schedules = self.repository.list_schedules(service_id, on_date)
        if not available_only:
            return schedules
        service = self._active_service(service_id)
        free = []
        for day, rows in groupby(schedules, key=lambda s: s.date):
            enabled = [s for s in rows if s.is_available]
            free_starts = set(self.conflicts.filter_available([s.start_time for s in enabled], service, day))
            free.extend(s for s in enabled if s.start_time in free_starts)
        return free
