"""
Storage interface consumed by the booking engine, and its SQLAlchemy implementation.

The engine only talks to a BookingRepository; it never opens sessions itself.
"""
import logging
from datetime import date
from typing import Callable, List, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_engine.core.errors import SlotAlreadyBooked
from booking_engine.db.models.appointment import ACTIVE_STATUSES, Appointment
from booking_engine.db.models.availability import BlockedInterval, BusinessHours, Holiday, Setting
from booking_engine.db.models.schedule import Schedule
from booking_engine.db.models.service import Service

logger = logging.getLogger(__name__)


class BookingRepository(Protocol):
    """Everything the engine reads or writes. Implementations own transactions."""

    def get_service(self, service_id: int) -> Optional[Service]: ...

    def list_active_services(self) -> List[Service]: ...

    def get_business_hours(self, weekday: int) -> Optional[BusinessHours]: ...

    def get_holiday(self, on_date: date) -> Optional[Holiday]: ...

    def list_recurring_holidays(self) -> List[Holiday]: ...

    def list_blocked_intervals(self, on_date: date) -> List[BlockedInterval]: ...

    def list_active_appointments(self, service_id: int, on_date: date) -> List[Appointment]: ...

    def insert_appointment_if_free(
        self, appointment: Appointment, is_free: Callable[[], bool]
    ) -> Appointment:
        """
        Run is_free() and the insert in one transaction. Raises SlotAlreadyBooked
        when the check fails or the store reports a uniqueness violation.
        """
        ...

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]: ...

    def save_appointment(self, appointment: Appointment) -> Appointment: ...

    def add_blocked_interval(self, block: BlockedInterval) -> BlockedInterval: ...

    def delete_blocked_intervals(self, on_date: date, start_time: str) -> int: ...

    def get_setting(self, key: str) -> Optional[str]: ...

    def get_schedule(self, schedule_id: int) -> Optional[Schedule]: ...

    def set_schedule_available(self, schedule: Schedule, is_available: bool) -> Schedule: ...

    def count_active_schedule_appointments(self, schedule_id: int) -> int: ...

    def delete_schedule(self, schedule: Schedule) -> None: ...

    def list_schedules(self, service_id: int, on_date: Optional[date] = None) -> List[Schedule]: ...

    def add_schedules(self, schedules: List[Schedule]) -> int: ...


class SqlAlchemyBookingRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---------------- services ----------------

    def get_service(self, service_id: int) -> Optional[Service]:
        return self.db.query(Service).filter(Service.id == service_id).first()

    def lock_service(self, service_id: int) -> Optional[Service]:
        if self.db.get_bind().dialect.name == "sqlite":
            # SQLite has no row locks; a no-op write takes the database write lock until commit/rollback
            self.db.execute(text("UPDATE services SET id = id WHERE id = :id"), {"id": service_id})
        # FOR UPDATE serialises bookings of one service on Postgres; SQLite omits the clause
        return self.db.query(Service).filter(Service.id == service_id).with_for_update().first()

    def list_active_services(self) -> List[Service]:
        return self.db.query(Service).filter(Service.is_active == True).order_by(Service.id).all()  # noqa: E712

    # ---------------- calendar ----------------

    def get_business_hours(self, weekday: int) -> Optional[BusinessHours]:
        return self.db.query(BusinessHours).filter(BusinessHours.weekday == weekday).first()

    def list_business_hours(self) -> List[BusinessHours]:
        return self.db.query(BusinessHours).order_by(BusinessHours.weekday).all()

    def upsert_business_hours(self, weekday: int, open_time: str, close_time: str, is_active: bool) -> BusinessHours:
        hours = self.get_business_hours(weekday)
        if hours is None:
            hours = BusinessHours(weekday=weekday)
            self.db.add(hours)
        hours.open_time = open_time
        hours.close_time = close_time
        hours.is_active = is_active
        self.db.commit()
        self.db.refresh(hours)
        return hours

    def get_holiday(self, on_date: date) -> Optional[Holiday]:
        return self.db.query(Holiday).filter(Holiday.date == on_date).first()

    def list_recurring_holidays(self) -> List[Holiday]:
        return self.db.query(Holiday).filter(Holiday.is_recurring == True).all()  # noqa: E712

    def list_holidays(self) -> List[Holiday]:
        return self.db.query(Holiday).order_by(Holiday.date).all()

    def add_holiday(self, holiday: Holiday) -> Holiday:
        self.db.add(holiday)
        self.db.commit()
        self.db.refresh(holiday)
        return holiday

    def delete_holiday(self, holiday_id: int) -> bool:
        holiday = self.db.query(Holiday).filter(Holiday.id == holiday_id).first()
        if holiday is None:
            return False
        self.db.delete(holiday)
        self.db.commit()
        return True

    def list_blocked_intervals(self, on_date: date) -> List[BlockedInterval]:
        return (
            self.db.query(BlockedInterval)
            .filter(BlockedInterval.date == on_date)
            .order_by(BlockedInterval.start_time)
            .all()
        )

    def add_blocked_interval(self, block: BlockedInterval) -> BlockedInterval:
        self.db.add(block)
        self.db.commit()
        self.db.refresh(block)
        return block

    def delete_blocked_intervals(self, on_date: date, start_time: str) -> int:
        removed = (
            self.db.query(BlockedInterval)
            .filter(BlockedInterval.date == on_date, BlockedInterval.start_time == start_time)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed

    def get_setting(self, key: str) -> Optional[str]:
        row = self.db.query(Setting).filter(Setting.key == key).first()
        return row.value if row else None

    def set_setting(self, key: str, value: str) -> None:
        row = self.db.query(Setting).filter(Setting.key == key).first()
        if row is None:
            self.db.add(Setting(key=key, value=value))
        else:
            row.value = value
        self.db.commit()

    # ---------------- appointments ----------------

    def list_active_appointments(self, service_id: int, on_date: date) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(
                Appointment.service_id == service_id,
                Appointment.date == on_date,
                Appointment.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Appointment.start_time)
            .all()
        )

    def list_appointments(
        self,
        on_date: Optional[date] = None,
        service_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Appointment]:
        q = self.db.query(Appointment)
        if on_date is not None:
            q = q.filter(Appointment.date == on_date)
        if service_id is not None:
            q = q.filter(Appointment.service_id == service_id)
        if status is not None:
            q = q.filter(Appointment.status == status)
        return q.order_by(Appointment.date, Appointment.start_time, Appointment.id).offset(offset).limit(limit).all()

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def save_appointment(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def insert_appointment_if_free(
        self, appointment: Appointment, is_free: Callable[[], bool]
    ) -> Appointment:
        slot = f"service={appointment.service_id} {appointment.date} {appointment.start_time}"
        try:
            self.lock_service(appointment.service_id)
            if not is_free():
                self.db.rollback()
                raise SlotAlreadyBooked(f"Slot {appointment.start_time} on {appointment.date} is already taken")
            self.db.add(appointment)
            self.db.commit()
        except IntegrityError:
            # another transaction committed the same slot between our check and insert
            self.db.rollback()
            logger.info("Uniqueness violation while claiming %s", slot)
            raise SlotAlreadyBooked(
                f"Slot {appointment.start_time} on {appointment.date} was just taken"
            ) from None
        self.db.refresh(appointment)
        return appointment

    # ---------------- schedules ----------------

    def get_schedule(self, schedule_id: int) -> Optional[Schedule]:
        return self.db.query(Schedule).filter(Schedule.id == schedule_id).first()

    def set_schedule_available(self, schedule: Schedule, is_available: bool) -> Schedule:
        schedule.is_available = is_available
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def count_active_schedule_appointments(self, schedule_id: int) -> int:
        return (
            self.db.query(Appointment)
            .filter(Appointment.schedule_id == schedule_id, Appointment.status.in_(ACTIVE_STATUSES))
            .count()
        )

    def delete_schedule(self, schedule: Schedule) -> None:
        # cancelled appointments keep their history but lose the link
        self.db.query(Appointment).filter(Appointment.schedule_id == schedule.id).update(
            {Appointment.schedule_id: None}, synchronize_session=False
        )
        self.db.delete(schedule)
        self.db.commit()

    def list_schedules(self, service_id: int, on_date: Optional[date] = None) -> List[Schedule]:
        q = self.db.query(Schedule).filter(Schedule.service_id == service_id)
        if on_date is not None:
            q = q.filter(Schedule.date == on_date)
        return q.order_by(Schedule.date, Schedule.start_time).all()

    def add_schedules(self, schedules: List[Schedule]) -> int:
        """Insert rows of one service not already present (by date/start). Returns the count inserted."""
        if not schedules:
            return 0
        existing = {
            (s.date, s.start_time)
            for s in self.db.query(Schedule.date, Schedule.start_time).filter(
                Schedule.service_id == schedules[0].service_id,
                Schedule.date >= min(s.date for s in schedules),
                Schedule.date <= max(s.date for s in schedules),
            )
        }
        fresh = [s for s in schedules if (s.date, s.start_time) not in existing]
        self.db.add_all(fresh)
        self.db.commit()
        return len(fresh)
