"""
Typed failures raised by the scheduling core and the use-case layer.

    SchedulingError (base)
    ├── InvalidIntervalError
    ├── StartInPastError
    ├── IdentityMismatchError
    ├── ShiftOutOfBoundsError
    ├── InvalidTransitionError
    ├── NotFoundError            (use-case layer)
    └── StaffUnavailableError    (use-case layer)

All of these are deterministic rule violations: callers surface them
unchanged and never retry.
"""

from typing import Any


class SchedulingError(Exception):
    """Base for every error the scheduling code raises on purpose."""

    error_type = "SchedulingError"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_type,
            "message": self.message,
        }
        if self.details:
            result.update(self.details)
        return result

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}('{self.message}')>"


class InvalidIntervalError(SchedulingError):
    """Start is not strictly before end."""

    error_type = "InvalidInterval"


class StartInPastError(SchedulingError):
    """A new event does not start strictly in the future."""

    error_type = "StartInPast"


class IdentityMismatchError(SchedulingError):
    error_type = "IdentityMismatch"


class ShiftOutOfBoundsError(SchedulingError):
    """
    One or more shifts would fall outside the event's interval.
    `count` is the number of offending shifts.
    """

    error_type = "ShiftOutOfBounds"

    def __init__(self, count: int, message: str | None = None):
        super().__init__(
            message
            or f"Cannot change event dates. {count} shift(s) would fall "
            "outside the new event timeframe.",
            details={"count": count},
        )
        self.count = count


class InvalidTransitionError(SchedulingError):
    error_type = "InvalidTransition"

    def __init__(self, from_status: str, action: str):
        super().__init__(
            f"Cannot {action} an assignment that is {from_status}",
            details={"from_status": from_status, "action": action},
        )
        self.from_status = from_status
        self.action = action


class NotFoundError(SchedulingError):
    error_type = "NotFound"


class StaffUnavailableError(SchedulingError):
    """The staff member already has an overlapping active assignment."""

    error_type = "StaffUnavailable"
