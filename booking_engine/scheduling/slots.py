"""
Slot Generation

Lays out the candidate start times of a service inside one operating window.
"""
from typing import List

from booking_engine.scheduling.calendar import OperatingWindow


def generate_slots(window: OperatingWindow, duration_minutes: int, buffer_minutes: int = 0) -> List[int]:
    """
    Candidate slot starts (minutes since midnight), strictly increasing.

    The first slot starts at window.open; each next one starts
    duration + buffer later; a slot is only emitted if it ends by
    window.close. Buffer separates slots, it is never added before the first
    or after the last one. A service longer than the window yields [].
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if buffer_minutes < 0:
        raise ValueError("buffer_minutes cannot be negative")

    step = duration_minutes + buffer_minutes
    slots = []
    start = window.open
    while start + duration_minutes <= window.close:
        slots.append(start)
        start += step
    return slots
