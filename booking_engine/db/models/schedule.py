# booking_engine/db/models/schedule.py
from sqlalchemy import Column, Integer, String, ForeignKey, Date, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from booking_engine.db.base import Base


class Schedule(Base):
    """
    Pre-generated candidate slot for a service.
    Occupied when a non-cancelled Appointment references it; is_available is
    only the administrator's on/off switch and booking never touches it.
    """
    __tablename__ = "schedules"
    __table_args__ = (
        UniqueConstraint("service_id", "date", "start_time", name="uq_schedules_service_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    service = relationship("Service", back_populates="schedules")
    appointments = relationship("Appointment", back_populates="schedule")
