"""
Check-in / check-out / cancellation of a single staff assignment.

    Scheduled -> CheckedIn -> CheckedOut
    Scheduled | CheckedIn -> Cancelled

CheckedOut and Cancelled are terminal.
"""

from collections.abc import Callable
from datetime import datetime
from enum import StrEnum

from medcover.errors import InvalidTransitionError
from medcover.models import AssignmentStatus, StaffAssignment, utc_now

NowFn = Callable[[], datetime]


class AssignmentAction(StrEnum):
    CHECK_IN = "check in"
    CHECK_OUT = "check out"
    CANCEL = "cancel"


ASSIGNMENT_TRANSITIONS: dict[
    tuple[AssignmentStatus, AssignmentAction], AssignmentStatus
] = {
    (AssignmentStatus.SCHEDULED, AssignmentAction.CHECK_IN): AssignmentStatus.CHECKED_IN,
    (AssignmentStatus.CHECKED_IN, AssignmentAction.CHECK_OUT): AssignmentStatus.CHECKED_OUT,
    (AssignmentStatus.SCHEDULED, AssignmentAction.CANCEL): AssignmentStatus.CANCELLED,
    (AssignmentStatus.CHECKED_IN, AssignmentAction.CANCEL): AssignmentStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset(
    {AssignmentStatus.CHECKED_OUT, AssignmentStatus.CANCELLED}
)


def _next_status(
    assignment: StaffAssignment, action: AssignmentAction
) -> AssignmentStatus:
    target = ASSIGNMENT_TRANSITIONS.get((assignment.status, action))
    if target is None:
        raise InvalidTransitionError(assignment.status.value, action.value)
    return target


def check_in(
    assignment: StaffAssignment, *, now_fn: NowFn = utc_now
) -> StaffAssignment:
    status = _next_status(assignment, AssignmentAction.CHECK_IN)
    return assignment.model_copy(
        update={"status": status, "check_in_time": now_fn()}
    )


def check_out(
    assignment: StaffAssignment, *, now_fn: NowFn = utc_now
) -> StaffAssignment:
    status = _next_status(assignment, AssignmentAction.CHECK_OUT)
    return assignment.model_copy(
        update={"status": status, "check_out_time": now_fn()}
    )


def cancel(assignment: StaffAssignment) -> StaffAssignment:
    status = _next_status(assignment, AssignmentAction.CANCEL)
    return assignment.model_copy(update={"status": status})
