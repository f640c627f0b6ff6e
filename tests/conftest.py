import os

# the app-level engine is built at import time; keep it off the working directory
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("GUEST_BOOKING_STATUS", "CONFIRMED")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from booking_engine.db.base import Base, get_db, make_engine
from booking_engine.db.models.appointment import Appointment  # noqa: F401
from booking_engine.db.models.availability import BusinessHours
from booking_engine.db.models.schedule import Schedule  # noqa: F401
from booking_engine.db.models.service import Service
from booking_engine.db.repository import SqlAlchemyBookingRepository
from booking_engine.scheduling.booking import BookingEngine
from booking_engine.schemas.booking import BookerInfo, InlineBookingRequest

MONDAY = date(2025, 6, 2)
TUESDAY = date(2025, 6, 3)
SATURDAY = date(2025, 6, 7)


@pytest.fixture
def db_engine(tmp_path):
    # file-backed so that worker threads in the concurrency tests share one database
    engine = make_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repository(db):
    return SqlAlchemyBookingRepository(db)


@pytest.fixture
def engine(repository):
    return BookingEngine(repository, buffer_minutes=0)


@pytest.fixture
def service(db):
    """30 minute service."""
    svc = Service(name="Consultation", duration_minutes=30, is_active=True)
    db.add(svc)
    db.commit()
    db.refresh(svc)
    return svc


@pytest.fixture
def weekday_hours(db):
    """Monday to Friday 08:00-18:00, closed at the weekend."""
    rows = [BusinessHours(weekday=d, open_time="08:00", close_time="18:00", is_active=True) for d in range(1, 6)]
    db.add_all(rows)
    db.commit()
    return rows


def make_request(service_id, on_date=MONDAY, start_time="10:00", name="Ada"):
    return InlineBookingRequest(
        service_id=service_id,
        date=on_date,
        start_time=start_time,
        booker=BookerInfo(name=name, email="ada@example.com"),
    )


@pytest.fixture
def client(session_factory, service, weekday_hours):
    from booking_engine.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
