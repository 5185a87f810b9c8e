"""
Use cases: load aggregates, run the decision core, perform notifications
and persist the result.

Notification failures are logged and never block persistence. Locks are
always taken staff-first (sorted by id), then event, so concurrent use
cases cannot deadlock. Every write to an event bumps its `updated_at`.
"""

from collections.abc import Callable, Iterable
from contextlib import AsyncExitStack
from datetime import datetime
from uuid import uuid4

from medcover.assignments import cancel, check_in, check_out
from medcover.availability import AssignmentWindow, is_available
from medcover.database import InMemoryKeyValueDatabase
from medcover.errors import NotFoundError, StaffUnavailableError
from medcover.logging import get_logger
from medcover.models import (
    AssignmentStatus,
    Event,
    Shift,
    Staff,
    StaffAssignment,
    utc_now,
)
from medcover.notifier import (
    send_event_invoice_notification,
    send_event_planned_notification,
    send_staff_assignment_notification,
)
from medcover.transitions import (
    NowFn,
    apply_changes,
    ensure_shifts_contained,
    initialize_new_event,
    record_invoice_notification_sent,
    record_planned_notification_sent,
)

logger = get_logger(__name__)

Database = InMemoryKeyValueDatabase[str, Event | Staff]


def new_id() -> str:
    return uuid4().hex


def event_key(event_id: str) -> str:
    return f"event:{event_id}"


def staff_key(staff_id: str) -> str:
    return f"staff:{staff_id}"


def _get_event(db: Database, event_id: str) -> Event:
    event = db.get(event_key(event_id))
    if not event or not isinstance(event, Event):
        raise NotFoundError(f"Event {event_id} not found")
    return event


def _get_staff(db: Database, staff_id: str) -> Staff:
    staff = db.get(staff_key(staff_id))
    if not staff or not isinstance(staff, Staff):
        raise NotFoundError(f"Staff {staff_id} not found")
    return staff


def _get_shift(event: Event, shift_id: str) -> Shift:
    shift = next((s for s in event.shifts if s.id == shift_id), None)
    if shift is None:
        raise NotFoundError(f"Shift {shift_id} not found in event {event.id}")
    return shift


def _find_assignment(
    db: Database, assignment_id: str
) -> tuple[Event, Shift, StaffAssignment]:
    for event in db.of_type(Event):
        for shift in event.shifts:
            for assignment in shift.staff_assignments:
                if assignment.id == assignment_id:
                    return event, shift, assignment
    raise NotFoundError(f"Assignment {assignment_id} not found")


def _touched(event: Event, now_fn: NowFn) -> Event:
    """Deep copy of `event` ready to be edited and persisted."""
    return event.model_copy(update={"updated_at": now_fn()}, deep=True)


async def _lock_all(stack: AsyncExitStack, db: Database, keys: Iterable[str]) -> None:
    for key in keys:
        await stack.enter_async_context(db.lock(key))


def staff_assignment_windows(db: Database, staff_id: str) -> list[AssignmentWindow]:
    """Every assignment of `staff_id` across stored events, with shift intervals."""
    return [
        AssignmentWindow.from_assignment(assignment, shift)
        for event in db.of_type(Event)
        for shift in event.shifts
        for assignment in shift.staff_assignments
        if assignment.staff_id == staff_id
    ]


def shift_assignments(db: Database, event_id: str, shift_id: str) -> list[StaffAssignment]:
    return list(_get_shift(_get_event(db, event_id), shift_id).staff_assignments)


async def create_event(
    event: Event, db: Database, *, now_fn: NowFn = utc_now
) -> Event:
    now = now_fn()
    event = event.model_copy(
        update={"id": event.id or new_id(), "created_at": now, "updated_at": now}
    )
    created = initialize_new_event(event, shift_id_fn=new_id, now_fn=now_fn)
    db.put(event_key(created.id), created)
    logger.info(
        "Event %s created with %d shift(s)",
        created.id,
        len(created.shifts),
        extra={"event_id": created.id},
    )
    return created


async def update_event(
    proposed: Event, db: Database, *, now_fn: NowFn = utc_now
) -> Event:
    """
    Apply `proposed` to the stored event, send whatever notifications the
    transition owes, and persist. `notification_sent` only flips on a
    successful send, so a failed email is retried on the next qualifying
    transition.
    """
    async with db.lock(event_key(proposed.id)):
        existing = _get_event(db, proposed.id)
        updated, decision = apply_changes(existing, proposed, now_fn=now_fn)
        logger.info(
            "Event %s status %s -> %s",
            updated.id,
            existing.status,
            updated.status,
            extra={
                "event_id": updated.id,
                "planned_notification": decision.should_send_planned_notification,
                "invoice_notification": decision.should_send_invoice_notification,
            },
        )

        if decision.should_send_planned_notification:
            try:
                await send_event_planned_notification(updated)
            except Exception:
                logger.exception(
                    "Failed sending planned notification for event %s", updated.id
                )
            else:
                updated = record_planned_notification_sent(updated, decision)
                logger.info("Planned notification sent for event %s", updated.id)

        if decision.should_send_invoice_notification:
            try:
                await send_event_invoice_notification(updated)
            except Exception:
                logger.exception(
                    "Failed sending invoice notification for event %s", updated.id
                )
            else:
                updated = record_invoice_notification_sent(updated)
                logger.info("Invoice notification sent for event %s", updated.id)

        db.put(event_key(updated.id), updated)
        return updated


async def add_shift(
    event_id: str, shift: Shift, db: Database, *, now_fn: NowFn = utc_now
) -> Shift:
    """
    Add `shift` to an event. Raises InvalidIntervalError for an inverted
    shift and ShiftOutOfBoundsError when it does not fit in the event.
    """
    async with db.lock(event_key(event_id)):
        event = _get_event(db, event_id)
        added = shift.model_copy(
            update={"id": shift.id or new_id(), "event_id": event_id}, deep=True
        )
        ensure_shifts_contained(event.interval, [added])

        updated = _touched(event, now_fn)
        updated.shifts.append(added)
        db.put(event_key(event_id), updated)
        logger.info(
            "Shift %s added to event %s %s",
            added.id,
            event_id,
            added.interval,
            extra={"event_id": event_id, "shift_id": added.id},
        )
        return added


async def remove_shift(
    event_id: str, shift_id: str, db: Database, *, now_fn: NowFn = utc_now
) -> Shift:
    """Remove a shift together with its assignments."""
    async with db.lock(event_key(event_id)):
        event = _get_event(db, event_id)
        removed = _get_shift(event, shift_id)

        updated = _touched(event, now_fn)
        updated.shifts = [s for s in updated.shifts if s.id != shift_id]
        db.put(event_key(event_id), updated)
        logger.info(
            "Shift %s removed from event %s (%d assignment(s) dropped)",
            shift_id,
            event_id,
            len(removed.staff_assignments),
            extra={"event_id": event_id, "shift_id": shift_id},
        )
        return removed


async def register_staff(staff: Staff, db: Database) -> Staff:
    staff = staff.model_copy(update={"id": staff.id or new_id()})
    db.put(staff_key(staff.id), staff)
    logger.info("Staff %s registered as %s", staff.id, staff.role)
    return staff


async def assign_staff(
    staff_id: str,
    event_id: str,
    shift_id: str,
    db: Database,
    *,
    now_fn: NowFn = utc_now,
) -> StaffAssignment:
    """Assign a staff member to a shift unless it would double-book them."""
    async with db.lock(staff_key(staff_id)), db.lock(event_key(event_id)):
        staff = _get_staff(db, staff_id)
        event = _get_event(db, event_id)
        shift = _get_shift(event, shift_id)

        windows = staff_assignment_windows(db, staff_id)
        if not is_available(staff_id, shift.interval, windows):
            logger.info(
                "Staff %s unavailable for shift %s %s",
                staff_id,
                shift_id,
                shift.interval,
                extra={"staff_id": staff_id, "shift_id": shift_id},
            )
            raise StaffUnavailableError(
                f"{staff.full_name} already has an assignment overlapping {shift.interval}",
                details={"staff_id": staff_id, "shift_id": shift_id},
            )

        assignment = StaffAssignment(
            id=new_id(),
            staff_id=staff_id,
            shift_id=shift_id,
            assigned_at=now_fn(),
        )
        updated = _touched(event, now_fn)
        _get_shift(updated, shift_id).staff_assignments.append(assignment)
        db.put(event_key(event_id), updated)
        logger.info(
            "Staff %s assigned to shift %s (assignment %s)",
            staff_id,
            shift_id,
            assignment.id,
            extra={"staff_id": staff_id, "assignment_id": assignment.id},
        )

    try:
        await send_staff_assignment_notification(staff, shift, event)
    except Exception:
        logger.exception(
            "Failed sending assignment notification for assignment %s", assignment.id
        )
    return assignment


async def remove_assignment(
    assignment_id: str, db: Database, *, now_fn: NowFn = utc_now
) -> StaffAssignment:
    """Delete an assignment outright; `cancel_assignment` keeps the record."""
    event, _, assignment = _find_assignment(db, assignment_id)
    async with db.lock(staff_key(assignment.staff_id)), db.lock(event_key(event.id)):
        event, shift, assignment = _find_assignment(db, assignment_id)
        updated = _touched(event, now_fn)
        target = _get_shift(updated, shift.id)
        target.staff_assignments = [
            a for a in target.staff_assignments if a.id != assignment_id
        ]
        db.put(event_key(event.id), updated)
        logger.info(
            "Assignment %s removed from shift %s",
            assignment_id,
            shift.id,
            extra={"assignment_id": assignment_id},
        )
        return assignment


async def _transition_assignment(
    assignment_id: str,
    db: Database,
    transition: Callable[[StaffAssignment], StaffAssignment],
    now_fn: NowFn,
) -> StaffAssignment:
    event, _, assignment = _find_assignment(db, assignment_id)
    async with db.lock(staff_key(assignment.staff_id)), db.lock(event_key(event.id)):
        # re-read under the locks
        event, shift, assignment = _find_assignment(db, assignment_id)
        changed = transition(assignment)

        updated = _touched(event, now_fn)
        target = _get_shift(updated, shift.id)
        target.staff_assignments = [
            changed if a.id == assignment_id else a
            for a in target.staff_assignments
        ]
        db.put(event_key(event.id), updated)
        logger.info(
            "Assignment %s %s -> %s",
            assignment_id,
            assignment.status,
            changed.status,
            extra={"assignment_id": assignment_id},
        )
        return changed


async def check_in_staff(
    assignment_id: str, db: Database, *, now_fn: NowFn = utc_now
) -> StaffAssignment:
    return await _transition_assignment(
        assignment_id, db, lambda a: check_in(a, now_fn=now_fn), now_fn
    )


async def check_out_staff(
    assignment_id: str, db: Database, *, now_fn: NowFn = utc_now
) -> StaffAssignment:
    return await _transition_assignment(
        assignment_id, db, lambda a: check_out(a, now_fn=now_fn), now_fn
    )


async def cancel_assignment(
    assignment_id: str, db: Database, *, now_fn: NowFn = utc_now
) -> StaffAssignment:
    return await _transition_assignment(assignment_id, db, cancel, now_fn)


async def reschedule_shift(
    event_id: str,
    shift_id: str,
    start: datetime,
    end: datetime,
    db: Database,
    *,
    now_fn: NowFn = utc_now,
) -> Shift:
    """
    Move a shift to [start, end). The new window must lie inside the event,
    and nobody assigned to the shift may end up double-booked.
    """
    current = _get_shift(_get_event(db, event_id), shift_id)
    assignees = sorted({a.staff_id for a in current.staff_assignments})

    async with AsyncExitStack() as stack:
        await _lock_all(stack, db, [staff_key(s) for s in assignees])
        await stack.enter_async_context(db.lock(event_key(event_id)))

        event = _get_event(db, event_id)
        shift = _get_shift(event, shift_id)
        # re-validate so naive datetimes are rejected like any other input
        moved = Shift.model_validate(
            {**shift.model_dump(), "start_time": start, "end_time": end}
        )
        ensure_shifts_contained(event.interval, [moved])
        candidate = moved.interval

        for assignment in shift.staff_assignments:
            if assignment.status == AssignmentStatus.CANCELLED:
                continue
            windows = staff_assignment_windows(db, assignment.staff_id)
            if not is_available(
                assignment.staff_id,
                candidate,
                windows,
                exclude_assignment_id=assignment.id,
            ):
                raise StaffUnavailableError(
                    f"Staff {assignment.staff_id} would be double-booked",
                    details={
                        "staff_id": assignment.staff_id,
                        "assignment_id": assignment.id,
                    },
                )

        updated = _touched(event, now_fn)
        updated.shifts = [moved if s.id == shift_id else s for s in updated.shifts]
        db.put(event_key(event_id), updated)
        logger.info(
            "Shift %s moved to %s",
            shift_id,
            candidate,
            extra={"event_id": event_id, "shift_id": shift_id},
        )
        return moved
