"""
Double-booking check for staff assignments.
Pure function: no I/O, no logging.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from medcover.intervals import TimeInterval
from medcover.models import AssignmentStatus, Shift, StaffAssignment


@dataclass(frozen=True, slots=True)
class AssignmentWindow:
    """An assignment together with the interval of the shift it covers."""

    assignment_id: str
    staff_id: str
    status: AssignmentStatus
    interval: TimeInterval

    @classmethod
    def from_assignment(
        cls, assignment: StaffAssignment, shift: Shift
    ) -> "AssignmentWindow":
        return cls(
            assignment_id=assignment.id,
            staff_id=assignment.staff_id,
            status=assignment.status,
            interval=shift.interval,
        )


def is_available(
    staff_id: str,
    candidate: TimeInterval,
    existing_assignments: Iterable[AssignmentWindow],
    exclude_assignment_id: str | None = None,
) -> bool:
    """
    True unless one of the staff member's active assignments overlaps
    `candidate`. Cancelled assignments and the one with id
    `exclude_assignment_id` (used when moving an assignment's own window)
    are ignored.
    """
    for window in existing_assignments:
        if window.staff_id != staff_id:
            continue
        if window.status == AssignmentStatus.CANCELLED:
            continue
        if (
            exclude_assignment_id is not None
            and window.assignment_id == exclude_assignment_id
        ):
            continue
        if window.interval.overlaps(candidate):
            return False
    return True
