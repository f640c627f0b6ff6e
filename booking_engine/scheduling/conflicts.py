"""
Conflict Resolver

Decides whether a candidate slot [start, start + duration) of a service is
free on a date, i.e. overlaps neither a non-cancelled appointment of that
service nor an administrator's blocked interval.

Results are snapshots: another request may claim a slot right after this
module reported it free. Only the booking transaction's atomic claim is
authoritative.
"""
from datetime import date
from typing import Iterable, List, Tuple

from booking_engine.scheduling.time_utils import overlaps, to_minutes

Interval = Tuple[int, int]


def _as_minutes(start) -> int:
    return to_minutes(start) if isinstance(start, str) else start


class ConflictResolver:
    def __init__(self, repository):
        self.repository = repository

    def busy_intervals(self, service, on_date: date) -> List[Interval]:
        """Occupied [start, end) ranges on a date, appointments first, then blocks."""
        busy = [
            (to_minutes(a.start_time), to_minutes(a.end_time))
            for a in self.repository.list_active_appointments(service.id, on_date)
        ]
        busy.extend(
            (to_minutes(b.start_time), to_minutes(b.end_time))
            for b in self.repository.list_blocked_intervals(on_date)
        )
        return busy

    @staticmethod
    def _is_free(start: int, duration: int, busy: List[Interval]) -> bool:
        end = start + duration
        return not any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy)

    def is_slot_free(self, service, on_date: date, start_time) -> bool:
        """start_time is "HH:MM" or minutes since midnight."""
        start = _as_minutes(start_time)
        return self._is_free(start, service.duration_minutes, self.busy_intervals(service, on_date))

    def filter_available(self, candidates: Iterable, service, on_date: date) -> list:
        """
        Keep the free candidates, in their original order. Candidates keep
        whatever form they came in ("HH:MM" or minutes).
        """
        busy = self.busy_intervals(service, on_date)
        return [c for c in candidates if self._is_free(_as_minutes(c), service.duration_minutes, busy)]
