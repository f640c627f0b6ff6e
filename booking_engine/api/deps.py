from fastapi import Depends
from sqlalchemy.orm import Session

from booking_engine.db.base import get_db
from booking_engine.db.repository import SqlAlchemyBookingRepository
from booking_engine.scheduling.booking import BookingEngine


def get_repository(db: Session = Depends(get_db)) -> SqlAlchemyBookingRepository:
    return SqlAlchemyBookingRepository(db)


def get_booking_engine(
    repository: SqlAlchemyBookingRepository = Depends(get_repository),
) -> BookingEngine:
    return BookingEngine(repository)
