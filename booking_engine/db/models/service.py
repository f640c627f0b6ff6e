# booking_engine/db/models/service.py

from sqlalchemy import Column, DateTime, Integer, String, Boolean, CheckConstraint, func
from sqlalchemy.orm import relationship
from booking_engine.db.base import Base


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Basic details
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)

    # Duration (in minutes). Not locked once appointments reference the service.
    duration_minutes = Column(Integer, nullable=False, default=60)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="service", lazy="selectin")
    schedules = relationship("Schedule", back_populates="service")
