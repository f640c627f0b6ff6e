from datetime import date, timedelta

import pytest

from booking_engine.core.errors import (
    AppointmentNotFound,
    InvalidInterval,
    InvalidTimeFormat,
    ScheduleInUse,
    ScheduleNotFound,
    ServiceUnavailable,
    SlotAlreadyBooked,
    SlotOutsideHours,
)
from booking_engine.db.models.appointment import AppointmentStatus
from booking_engine.db.models.availability import Holiday
from booking_engine.db.models.service import Service
from booking_engine.scheduling.booking import BUFFER_SETTING_KEY, BookingEngine
from booking_engine.schemas.booking import BookerInfo, ScheduleBookingRequest

from conftest import MONDAY, SATURDAY, TUESDAY, make_request


@pytest.fixture(autouse=True)
def _calendar(weekday_hours):
    return weekday_hours


# ---------------- available slots ----------------

def test_open_monday_has_twenty_slots(engine, service):
    slots = engine.get_available_slots(service.id, MONDAY)
    assert len(slots) == 20
    assert slots[0] == "08:00"
    assert slots[-1] == "17:30"


def test_holiday_has_no_slots(db, engine, service):
    db.add(Holiday(date=MONDAY, name="Bank holiday"))
    db.commit()
    assert engine.get_available_slots(service.id, MONDAY) == []


def test_closed_weekday_has_no_slots(engine, service):
    assert engine.get_available_slots(service.id, SATURDAY) == []


def test_booked_slot_disappears_from_listing(engine, service):
    engine.book(make_request(service.id, start_time="10:00"))
    slots = engine.get_available_slots(service.id, MONDAY)
    assert "10:00" not in slots
    assert "09:30" in slots and "10:30" in slots
    assert len(slots) == 19


def test_blocked_interval_removes_slots(engine, service):
    engine.block_interval(MONDAY, "12:00", "13:00", "Lunch")
    slots = engine.get_available_slots(service.id, MONDAY)
    assert "12:00" not in slots and "12:30" not in slots
    assert "11:30" in slots and "13:00" in slots


def test_unblock_interval_restores_slots(engine, service):
    engine.block_interval(MONDAY, "12:00", "13:00")
    assert engine.unblock_interval(MONDAY, "12:00") == 1
    assert "12:00" in engine.get_available_slots(service.id, MONDAY)
    assert engine.unblock_interval(MONDAY, "12:00") == 0


def test_block_interval_requires_start_before_end(engine):
    with pytest.raises(InvalidInterval):
        engine.block_interval(MONDAY, "13:00", "12:00")
    with pytest.raises(InvalidTimeFormat):
        engine.block_interval(MONDAY, "12:00", "25:00")


def test_inactive_service_is_unavailable(db, engine, service):
    service.is_active = False
    db.commit()
    with pytest.raises(ServiceUnavailable):
        engine.get_available_slots(service.id, MONDAY)
    with pytest.raises(ServiceUnavailable):
        engine.get_available_slots(9999, MONDAY)


# ---------------- buffer ----------------

def test_buffer_comes_from_settings_table(repository, service):
    repository.set_setting(BUFFER_SETTING_KEY, "15")
    engine = BookingEngine(repository)
    assert engine.buffer_minutes() == 15
    assert engine.get_available_slots(service.id, MONDAY)[:3] == ["08:00", "08:45", "09:30"]


def test_buffer_falls_back_to_configured_default(repository):
    assert BookingEngine(repository).buffer_minutes() == 15


def test_explicit_buffer_wins(repository):
    repository.set_setting(BUFFER_SETTING_KEY, "45")
    assert BookingEngine(repository, buffer_minutes=0).buffer_minutes() == 0


# ---------------- is_slot_available ----------------

def test_is_slot_available_around_a_booking(engine, service):
    assert engine.is_slot_available(service.id, MONDAY, "10:00")
    engine.book(make_request(service.id, start_time="10:00"))
    assert not engine.is_slot_available(service.id, MONDAY, "10:00")
    assert not engine.is_slot_available(service.id, MONDAY, "09:45")
    assert engine.is_slot_available(service.id, MONDAY, "10:30")


def test_is_slot_available_false_outside_hours(engine, service):
    assert not engine.is_slot_available(service.id, MONDAY, "07:30")
    assert not engine.is_slot_available(service.id, MONDAY, "17:45")
    assert not engine.is_slot_available(service.id, SATURDAY, "10:00")


def test_is_slot_available_false_for_unknown_or_inactive_service(db, engine, service):
    assert not engine.is_slot_available(9999, MONDAY, "10:00")
    service.is_active = False
    db.commit()
    assert not engine.is_slot_available(service.id, MONDAY, "10:00")


def test_is_slot_available_rejects_malformed_time(engine, service):
    with pytest.raises(InvalidTimeFormat):
        engine.is_slot_available(service.id, MONDAY, "10h00")


# ---------------- book ----------------

def test_book_creates_scheduled_appointment(engine, service):
    appointment = engine.book(make_request(service.id, start_time="10:00"))
    assert appointment.id is not None
    assert appointment.status == AppointmentStatus.SCHEDULED.value
    assert appointment.start_time == "10:00"
    assert appointment.end_time == "10:30"
    assert appointment.client_name == "Ada"
    assert appointment.schedule_id is None


def test_guest_booking_uses_guest_status(repository, service):
    appointment = BookingEngine(repository, buffer_minutes=0).book_guest(make_request(service.id))
    assert appointment.status == AppointmentStatus.CONFIRMED.value
    pending = BookingEngine(repository, buffer_minutes=0, guest_status="PENDING")
    assert pending.book_guest(make_request(service.id, start_time="11:00")).status == "PENDING"


def test_initial_status_cannot_be_terminal(engine, service):
    with pytest.raises(ValueError):
        engine.book(make_request(service.id), initial_status=AppointmentStatus.CANCELLED)


def test_second_booking_of_same_slot_is_rejected(engine, service):
    engine.book(make_request(service.id, start_time="10:00"))
    with pytest.raises(SlotAlreadyBooked):
        engine.book(make_request(service.id, start_time="10:00", name="Grace"))


def test_overlapping_booking_is_rejected(engine, service):
    engine.book(make_request(service.id, start_time="10:00"))
    with pytest.raises(SlotAlreadyBooked):
        engine.book(make_request(service.id, start_time="10:15"))


def test_outside_hours_is_not_reported_as_taken(engine, service):
    with pytest.raises(SlotOutsideHours):
        engine.book(make_request(service.id, start_time="17:45"))
    with pytest.raises(SlotOutsideHours):
        engine.book(make_request(service.id, on_date=SATURDAY))


def test_booking_on_holiday_is_outside_hours(db, engine, service):
    db.add(Holiday(date=MONDAY, name="Closed"))
    db.commit()
    with pytest.raises(SlotOutsideHours):
        engine.book(make_request(service.id))


def test_booking_inactive_service(db, engine, service):
    service.is_active = False
    db.commit()
    with pytest.raises(ServiceUnavailable):
        engine.book(make_request(service.id))


def test_booking_blocked_interval_is_rejected(engine, service):
    engine.block_interval(MONDAY, "10:00", "11:00")
    with pytest.raises(SlotAlreadyBooked):
        engine.book(make_request(service.id, start_time="10:30"))


def test_cancelled_slot_can_be_booked_again(engine, service):
    first = engine.book(make_request(service.id, start_time="10:00"))
    engine.update_status(first.id, AppointmentStatus.CANCELLED)
    assert "10:00" in engine.get_available_slots(service.id, MONDAY)
    assert engine.is_slot_available(service.id, MONDAY, "10:00")
    second = engine.book(make_request(service.id, start_time="10:00", name="Grace"))
    assert second.id != first.id


def test_off_grid_start_inside_hours_is_accepted(engine, service):
    appointment = engine.book(make_request(service.id, start_time="10:10"))
    assert appointment.end_time == "10:40"
    slots = engine.get_available_slots(service.id, MONDAY)
    assert "10:00" not in slots and "10:30" not in slots


def test_update_status_unknown_appointment(engine):
    with pytest.raises(AppointmentNotFound):
        engine.update_status(12345, AppointmentStatus.CONFIRMED)


# ---------------- schedules ----------------

def test_generate_schedules_is_idempotent(engine, service):
    created = engine.generate_schedules(service.id, MONDAY, TUESDAY + timedelta(days=5))
    # Mon-Fri x 20 slots, weekend closed
    assert created == 5 * 20
    assert engine.generate_schedules(service.id, MONDAY, TUESDAY + timedelta(days=5)) == 0
    assert len(engine.list_schedules(service.id, MONDAY)) == 20


def test_book_by_schedule(engine, service):
    engine.generate_schedules(service.id, MONDAY, MONDAY)
    schedule = engine.list_schedules(service.id, MONDAY)[4]
    appointment = engine.book(ScheduleBookingRequest(schedule_id=schedule.id, booker=BookerInfo(name="Ada")))
    assert appointment.schedule_id == schedule.id
    assert appointment.start_time == schedule.start_time

    free = engine.list_schedules(service.id, MONDAY, available_only=True)
    assert schedule.id not in [s.id for s in free]
    assert len(free) == 19

    with pytest.raises(SlotAlreadyBooked):
        engine.book(ScheduleBookingRequest(schedule_id=schedule.id, booker=BookerInfo(name="Grace")))
    # the same slot booked inline is refused as well
    with pytest.raises(SlotAlreadyBooked):
        engine.book(make_request(service.id, start_time=schedule.start_time))


def test_book_unknown_or_disabled_schedule(db, engine, service):
    with pytest.raises(ScheduleNotFound):
        engine.book(ScheduleBookingRequest(schedule_id=999, booker=BookerInfo(name="Ada")))
    engine.generate_schedules(service.id, MONDAY, MONDAY)
    schedule = engine.list_schedules(service.id, MONDAY)[0]
    schedule.is_available = False
    db.commit()
    with pytest.raises(SlotOutsideHours):
        engine.book(ScheduleBookingRequest(schedule_id=schedule.id, booker=BookerInfo(name="Ada")))


# ---------------- supplements ----------------

def test_availability_range(engine, service):
    days = engine.get_availability_range(service.id, MONDAY, SATURDAY)
    assert list(days) == [MONDAY + timedelta(days=i) for i in range(6)]
    assert len(days[MONDAY]) == 20
    assert days[SATURDAY] == []


def test_availability_range_limits(engine, service):
    with pytest.raises(InvalidInterval):
        engine.get_availability_range(service.id, TUESDAY, MONDAY)
    with pytest.raises(InvalidInterval):
        engine.get_availability_range(service.id, MONDAY, MONDAY + timedelta(days=60))


def test_next_available_slots(engine, service):
    engine.book(make_request(service.id, start_time="08:00"))
    found = engine.get_next_available_slots(service.id, limit=3, from_date=MONDAY)
    assert [(s.date, s.time) for s in found] == [(MONDAY, "08:30"), (MONDAY, "09:00"), (MONDAY, "09:30")]
    assert found[0].datetime == "2025-06-02 08:30"


def test_next_available_slots_skips_closed_days(engine, service):
    found = engine.get_next_available_slots(service.id, limit=1, from_date=SATURDAY)
    assert found[0].date == SATURDAY + timedelta(days=2)
    assert found[0].time == "08:00"


def test_next_available_slots_gives_up_after_scan_window(db, repository, service):
    db.query(Service).filter(Service.id == service.id).update({"duration_minutes": 900})
    db.commit()
    engine = BookingEngine(repository, buffer_minutes=0, next_slots_max_days=7)
    assert engine.get_next_available_slots(service.id, from_date=date(2030, 1, 1)) == []


def test_availability_stats(engine, service):
    engine.book(make_request(service.id, start_time="10:00"))
    engine.book(make_request(service.id, start_time="11:00"))
    stats = engine.get_availability_stats(MONDAY, MONDAY)
    assert stats.total_slots == 20
    assert stats.booked_slots == 2
    assert stats.available_slots == 18
    assert stats.occupancy_rate == 10.0


def test_availability_stats_closed_range(engine, service):
    stats = engine.get_availability_stats(SATURDAY, SATURDAY + timedelta(days=1))
    assert stats.total_slots == 0
    assert stats.occupancy_rate == 0.0


def test_availability_stats_range_is_capped(repository, service):
    engine = BookingEngine(repository, buffer_minutes=0, max_range_days=7)
    with pytest.raises(InvalidInterval):
        engine.get_availability_stats(MONDAY, MONDAY + timedelta(days=7))
    with pytest.raises(InvalidInterval):
        engine.get_availability_stats(TUESDAY, MONDAY)
    assert engine.get_availability_stats(MONDAY, MONDAY + timedelta(days=6)).total_slots == 5 * 20


def test_schedule_switch_and_delete(engine, service):
    engine.generate_schedules(service.id, MONDAY, MONDAY)
    first_id, second_id = [s.id for s in engine.list_schedules(service.id, MONDAY)[:2]]

    engine.set_schedule_available(first_id, False)
    assert engine.get_schedule(first_id).is_available is False
    with pytest.raises(SlotOutsideHours):
        engine.book(ScheduleBookingRequest(schedule_id=first_id, booker=BookerInfo(name="Ada")))
    engine.set_schedule_available(first_id, True)
    engine.book(ScheduleBookingRequest(schedule_id=first_id, booker=BookerInfo(name="Ada")))

    with pytest.raises(ScheduleInUse):
        engine.delete_schedule(first_id)
    engine.delete_schedule(second_id)
    with pytest.raises(ScheduleNotFound):
        engine.get_schedule(second_id)
    with pytest.raises(ScheduleNotFound):
        engine.set_schedule_available(second_id, True)


def test_schedule_with_only_cancelled_appointments_can_be_deleted(engine, service):
    engine.generate_schedules(service.id, MONDAY, MONDAY)
    schedule_id = engine.list_schedules(service.id, MONDAY)[0].id
    appointment_id = engine.book(ScheduleBookingRequest(schedule_id=schedule_id, booker=BookerInfo(name="Ada"))).id
    engine.update_status(appointment_id, AppointmentStatus.CANCELLED)

    engine.delete_schedule(schedule_id)
    kept = engine.repository.get_appointment(appointment_id)
    assert kept.status == "CANCELLED"
    assert kept.schedule_id is None
