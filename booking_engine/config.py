"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env at the project root (parent of booking_engine/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./booking.db"
    sql_echo: bool = False
    log_level: str = "INFO"

    # Fallback when no "appointment_buffer_minutes" row exists in the settings table
    appointment_buffer_minutes: int = 15
    # Status a public/guest booking lands in: CONFIRMED or PENDING
    guest_booking_status: str = "CONFIRMED"

    availability_max_days: int = 31
    next_slots_max_days: int = 30
    next_slots_default_limit: int = 10

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("guest_booking_status", mode="after")
    @classmethod
    def check_guest_status(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if v not in ("CONFIRMED", "PENDING"):
            raise ValueError("guest_booking_status must be CONFIRMED or PENDING")
        return v

    @field_validator("appointment_buffer_minutes", mode="after")
    @classmethod
    def check_buffer(cls, v: int) -> int:
        if v < 0:
            raise ValueError("appointment_buffer_minutes cannot be negative")
        return v


settings = Settings()
