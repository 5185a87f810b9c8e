"""
Notification delivery. Only logs the outgoing message; wire a real mail
transport in here when one is available.
"""

from medcover.config import settings
from medcover.logging import get_logger
from medcover.models import Event, Shift, Staff

logger = get_logger(__name__)


async def _deliver(to: str, subject: str) -> None:
    if not settings.notifications_enabled:
        logger.warning("Notifications disabled. Skipping email to %s", to)
        return
    logger.info("Email queued to %s: %s", to, subject)


async def send_event_planned_notification(event: Event) -> None:
    if not event.contact_email:
        logger.warning(
            "Cannot send event planned email for event %s: no contact email",
            event.id,
        )
        return
    await _deliver(event.contact_email, f"Event Planning Update: {event.name}")


async def send_event_invoice_notification(event: Event) -> None:
    if not event.contact_email:
        logger.warning(
            "Cannot send event invoice email for event %s: no contact email",
            event.id,
        )
        return
    await _deliver(event.contact_email, f"Invoice for Event: {event.name}")


async def send_staff_assignment_notification(
    staff: Staff, shift: Shift, event: Event
) -> None:
    await _deliver(
        staff.email,
        f"Shift Assignment: {event.name} - {shift.name} "
        f"({shift.start_time:%Y-%m-%d %H:%M} to {shift.end_time:%H:%M})",
    )
