"""
Post-booking notification hooks.

The booking engine never notifies anyone itself. Routes schedule
`dispatch_appointment_event` as a background task after the response is
built; each registered hook gets the event name and a plain payload dict.
Hooks are best effort: a failing hook is logged and skipped, it never
reaches the caller or the other hooks.
"""
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

EVENT_BOOKED = "appointment.booked"
EVENT_STATUS_CHANGED = "appointment.status_changed"

Hook = Callable[[str, dict[str, Any]], None]

_hooks: list[Hook] = []


def register_hook(hook: Hook) -> None:
    if hook not in _hooks:
        _hooks.append(hook)


def unregister_hook(hook: Hook) -> None:
    if hook in _hooks:
        _hooks.remove(hook)


def appointment_payload(appointment) -> dict[str, Any]:
    return {
        "appointment_id": appointment.id,
        "service_id": appointment.service_id,
        "date": appointment.date.isoformat(),
        "start_time": appointment.start_time,
        "end_time": appointment.end_time,
        "status": appointment.status,
        "client_name": appointment.client_name,
        "client_email": appointment.client_email,
    }


def log_hook(event: str, payload: dict[str, Any]) -> None:
    logger.info("%s: appointment %s on %s at %s", event, payload.get("appointment_id"), payload.get("date"), payload.get("start_time"))


def dispatch_appointment_event(event: str, payload: dict[str, Any]) -> int:
    """Call every hook. Returns how many succeeded."""
    delivered = 0
    for hook in list(_hooks):
        try:
            hook(event, payload)
            delivered += 1
        except Exception:
            logger.warning("Notification hook %r failed for %s", hook, event, exc_info=True)
    return delivered


register_hook(log_hook)
