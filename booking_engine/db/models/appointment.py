# booking_engine/db/models/appointment.py
from enum import Enum

from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from booking_engine.db.base import Base


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (
    AppointmentStatus.SCHEDULED.value,
    AppointmentStatus.PENDING.value,
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.COMPLETED.value,
)

_NOT_CANCELLED = text("status != 'CANCELLED'")


class Appointment(Base):
    """
    A claimed slot. Rows are never deleted; cancelling frees the slot because
    the uniqueness indexes below only cover non-cancelled rows.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "service_id", "date", "start_time",
            unique=True,
            sqlite_where=_NOT_CANCELLED,
            postgresql_where=_NOT_CANCELLED,
        ),
        Index(
            "uq_appointments_active_schedule",
            "schedule_id",
            unique=True,
            sqlite_where=text("status != 'CANCELLED' AND schedule_id IS NOT NULL"),
            postgresql_where=text("status != 'CANCELLED' AND schedule_id IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)

    status = Column(String(16), nullable=False, default=AppointmentStatus.SCHEDULED.value)

    client_name = Column(String, nullable=True)
    client_email = Column(String, nullable=True)
    client_phone = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # relationships
    service = relationship("Service", back_populates="appointments")
    schedule = relationship("Schedule", back_populates="appointments")
