# booking_engine/db/models/availability.py
from sqlalchemy import Column, Integer, Date, Boolean, DateTime, String, CheckConstraint
from sqlalchemy.sql import func
from booking_engine.db.base import Base


class BusinessHours(Base):
    """
    Weekly opening hours of the business.
    weekday: 0 (Sunday) .. 6 (Saturday), one row per weekday
    open_time, close_time: "HH:MM" strings, open_time < close_time
    A weekday without an active row is a closed day.
    """
    __tablename__ = "business_hours"
    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_business_hours_weekday"),
    )

    id = Column(Integer, primary_key=True, index=True)
    weekday = Column(Integer, nullable=False, unique=True)
    open_time = Column(String(5), nullable=False)
    close_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class Holiday(Base):
    """
    A date with no slots at all, whatever the business hours say.
    Recurring holidays match on month/day in every year.
    """
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, unique=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)


class BlockedInterval(Base):
    """
    Capacity withheld by an administrator (maintenance, personal time).
    Applies to every service on that date.
    """
    __tablename__ = "blocked_intervals"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Setting(Base):
    """Key/value system settings, e.g. appointment_buffer_minutes."""
    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    value = Column(String, nullable=False)
