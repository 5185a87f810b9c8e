from datetime import timedelta

import pytest

from medcover.assignments import cancel, check_in, check_out
from medcover.errors import InvalidTransitionError
from medcover.models import AssignmentStatus
from tests.factories import NOW, fixed_clock, make_assignment


def test_check_in_then_check_out_sets_both_timestamps() -> None:
    scheduled = make_assignment("a-1")
    checked_in = check_in(scheduled, now_fn=fixed_clock(NOW))
    checked_out = check_out(checked_in, now_fn=fixed_clock(NOW + timedelta(hours=8)))

    assert checked_in.status == AssignmentStatus.CHECKED_IN
    assert checked_out.status == AssignmentStatus.CHECKED_OUT
    assert checked_out.check_in_time == NOW
    assert checked_out.check_out_time == NOW + timedelta(hours=8)
    assert checked_out.check_in_time <= checked_out.check_out_time
    # inputs untouched
    assert scheduled.status == AssignmentStatus.SCHEDULED
    assert scheduled.check_in_time is None


def test_check_out_without_check_in_fails() -> None:
    with pytest.raises(InvalidTransitionError) as err:
        check_out(make_assignment("a-1"), now_fn=fixed_clock())
    assert err.value.from_status == "Scheduled"
    assert err.value.action == "check out"


def test_double_check_in_fails() -> None:
    checked_in = check_in(make_assignment("a-1"), now_fn=fixed_clock())
    with pytest.raises(InvalidTransitionError):
        check_in(checked_in, now_fn=fixed_clock())


@pytest.mark.parametrize(
    "status", [AssignmentStatus.SCHEDULED, AssignmentStatus.CHECKED_IN]
)
def test_cancel_allowed_before_check_out(status: AssignmentStatus) -> None:
    cancelled = cancel(make_assignment("a-1", status=status))
    assert cancelled.status == AssignmentStatus.CANCELLED


@pytest.mark.parametrize(
    "status", [AssignmentStatus.CHECKED_OUT, AssignmentStatus.CANCELLED]
)
def test_terminal_states_reject_everything(status: AssignmentStatus) -> None:
    assignment = make_assignment("a-1", status=status)
    with pytest.raises(InvalidTransitionError):
        check_in(assignment, now_fn=fixed_clock())
    with pytest.raises(InvalidTransitionError):
        check_out(assignment, now_fn=fixed_clock())
    with pytest.raises(InvalidTransitionError):
        cancel(assignment)
