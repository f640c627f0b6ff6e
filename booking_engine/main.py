"""
FastAPI app entrypoint for the availability & booking engine.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_engine.config import settings
from booking_engine.core.errors import BookingEngineError, booking_error_to_http
from booking_engine.db.base import Base, engine
from booking_engine.db.models import appointment, availability, schedule, service  # noqa: F401
from booking_engine.api.routes import admin as calendar_router
from booking_engine.api.routes import availability as availability_router
from booking_engine.api.routes import bookings as bookings_router
from booking_engine.api.routes import schedules as schedules_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # dev convenience; deployments run `alembic upgrade head` instead
    Base.metadata.create_all(bind=engine)
    logger.info("Booking engine ready (database=%s)", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title="Availability & Booking Engine", version="0.1.0", lifespan=lifespan)


@app.exception_handler(BookingEngineError)
async def booking_error_handler(request: Request, exc: BookingEngineError):
    http_exc = booking_error_to_http(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.get("/")
def root():
    return {"message": "Availability & Booking Engine API running", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(availability_router.router)
app.include_router(bookings_router.router)
app.include_router(calendar_router.router)
app.include_router(schedules_router.router)
