"""
Event lifecycle transitions.

Status flows Requested -> Planned -> Confirmed -> Active -> Completed, with
SendInvoice reachable late in the lifecycle and Cancelled from anywhere.
Any status may be written; only the transitions listed in
TRANSITION_EFFECTS carry side effects. Everything here is pure: the engine
returns a new Event plus a SideEffectDecision and never sends anything.
"""

from collections.abc import Callable, Iterable
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from medcover.config import settings
from medcover.errors import (
    IdentityMismatchError,
    ShiftOutOfBoundsError,
    StartInPastError,
)
from medcover.intervals import TimeInterval, find_uncontained_shifts
from medcover.models import Event, EventStatus, Shift, ShiftStatus, utc_now

NowFn = Callable[[], datetime]
IdFn = Callable[[], str]


class SideEffect(StrEnum):
    PLANNED_NOTIFICATION = "planned_notification"
    CONFIRM_AFTER_PLANNED = "confirm_after_planned"
    INVOICE_NOTIFICATION = "invoice_notification"


# suppressed once a planning email has gone out
DEDUPLICATED_EFFECTS = frozenset(
    {SideEffect.PLANNED_NOTIFICATION, SideEffect.CONFIRM_AFTER_PLANNED}
)

TRANSITION_EFFECTS: dict[tuple[EventStatus, EventStatus], frozenset[SideEffect]] = {
    **{
        (source, EventStatus.PLANNED): frozenset(
            {SideEffect.PLANNED_NOTIFICATION, SideEffect.CONFIRM_AFTER_PLANNED}
        )
        for source in EventStatus
        if source != EventStatus.PLANNED
    },
    **{
        (source, EventStatus.SEND_INVOICE): frozenset(
            {SideEffect.INVOICE_NOTIFICATION}
        )
        for source in EventStatus
        if source != EventStatus.SEND_INVOICE
    },
}

# fields copied from a proposal; id and created_at always survive
MUTABLE_FIELDS = (
    "name",
    "start_date",
    "end_date",
    "location",
    "description",
    "status",
    "contact_person",
    "contact_phone",
    "contact_email",
)


class SideEffectDecision(BaseModel):
    """Which notifications the caller owes after a transition."""

    model_config = ConfigDict(frozen=True)

    should_send_planned_notification: bool = False
    promote_to_confirmed_after_planned: bool = False
    should_send_invoice_notification: bool = False

    @classmethod
    def from_effects(cls, effects: frozenset[SideEffect]) -> "SideEffectDecision":
        return cls(
            should_send_planned_notification=SideEffect.PLANNED_NOTIFICATION
            in effects,
            promote_to_confirmed_after_planned=SideEffect.CONFIRM_AFTER_PLANNED
            in effects,
            should_send_invoice_notification=SideEffect.INVOICE_NOTIFICATION
            in effects,
        )

    @property
    def has_side_effects(self) -> bool:
        return (
            self.should_send_planned_notification
            or self.should_send_invoice_notification
        )


def ensure_shifts_contained(
    event_interval: TimeInterval, shifts: Iterable[Shift]
) -> None:
    """
    Raise InvalidIntervalError for an inverted shift and
    ShiftOutOfBoundsError when any shift leaves `event_interval`.
    """
    violating = find_uncontained_shifts(
        event_interval, [shift.interval for shift in shifts]
    )
    if violating:
        raise ShiftOutOfBoundsError(len(violating))


def effects_for(
    from_status: EventStatus,
    to_status: EventStatus,
    *,
    notification_sent: bool,
    can_contact: bool,
) -> frozenset[SideEffect]:
    if not can_contact:
        return frozenset()
    effects = TRANSITION_EFFECTS.get((from_status, to_status), frozenset())
    if notification_sent:
        effects = effects - DEDUPLICATED_EFFECTS
    return effects


def apply_changes(
    existing: Event, proposed: Event, *, now_fn: NowFn = utc_now
) -> tuple[Event, SideEffectDecision]:
    """
    Validate `proposed` against the persisted `existing` event and return
    the updated event with the decision describing owed notifications.

    Raises IdentityMismatchError, InvalidIntervalError or
    ShiftOutOfBoundsError. Neither argument is modified.
    """
    if existing.id != proposed.id:
        raise IdentityMismatchError(
            "Mismatched Event ids.",
            details={"existing_id": existing.id, "proposed_id": proposed.id},
        )

    new_interval = TimeInterval(proposed.start_date, proposed.end_date)

    dates_changed = (
        existing.start_date != proposed.start_date
        or existing.end_date != proposed.end_date
    )
    if dates_changed:
        ensure_shifts_contained(new_interval, existing.shifts)

    changes = {field: getattr(proposed, field) for field in MUTABLE_FIELDS}
    changes["updated_at"] = now_fn()
    updated = existing.model_copy(update=changes, deep=True)

    can_contact = bool(updated.contact_email and updated.contact_email.strip())
    effects = effects_for(
        existing.status,
        proposed.status,
        notification_sent=existing.notification_sent,
        can_contact=can_contact,
    )
    return updated, SideEffectDecision.from_effects(effects)


def record_planned_notification_sent(
    event: Event, decision: SideEffectDecision
) -> Event:
    """State after the planned email was delivered."""
    changes: dict = {"notification_sent": True}
    if decision.promote_to_confirmed_after_planned:
        changes["status"] = EventStatus.CONFIRMED
    return event.model_copy(update=changes)


def record_invoice_notification_sent(event: Event) -> Event:
    return event.model_copy(update={"notification_sent": True})


def initialize_new_event(
    event: Event, *, shift_id_fn: IdFn, now_fn: NowFn = utc_now
) -> Event:
    """
    Prepare a freshly requested event. Seeds one shift spanning the whole
    event when the caller supplied none.

    Raises InvalidIntervalError (event or supplied shift), StartInPastError
    or ShiftOutOfBoundsError.
    """
    interval = event.interval
    now = now_fn()
    if interval.start <= now:
        raise StartInPastError(
            "Start date must be in the future.",
            details={"start_date": interval.start.isoformat()},
        )

    ensure_shifts_contained(interval, event.shifts)
    shifts = [
        shift.model_copy(update={"event_id": event.id}, deep=True)
        for shift in event.shifts
    ]
    if not shifts:
        shifts.append(
            Shift(
                id=shift_id_fn(),
                event_id=event.id,
                name=settings.default_shift_name,
                start_time=interval.start,
                end_time=interval.end,
                required_staff=settings.default_shift_required_staff,
                description=settings.default_shift_description,
                status=ShiftStatus.OPEN,
            )
        )

    return event.model_copy(
        update={
            "status": EventStatus.REQUESTED,
            "notification_sent": False,
            "shifts": shifts,
        }
    )
