"""
Domain models for medical-coverage events, their shifts and staffing.
"""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import AwareDatetime, BaseModel, Field

from medcover.intervals import TimeInterval


def utc_now() -> datetime:
    return datetime.now(UTC)


class EventStatus(StrEnum):
    REQUESTED = "Requested"
    PLANNED = "Planned"
    CONFIRMED = "Confirmed"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    SEND_INVOICE = "SendInvoice"
    CANCELLED = "Cancelled"


class ShiftStatus(StrEnum):
    OPEN = "Open"
    FULL = "Full"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class AssignmentStatus(StrEnum):
    SCHEDULED = "Scheduled"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    CANCELLED = "Cancelled"


class StaffRole(StrEnum):
    FIRST_AIDER = "FirstAider"
    TEAM_LEADER = "TeamLeader"
    PARAMEDIC = "Paramedic"
    DOCTOR = "Doctor"
    VOLUNTEER = "Volunteer"


class Staff(BaseModel):
    id: str
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    role: StaffRole
    certification_level: str | None = Field(default=None, max_length=50)
    certification_expiry: AwareDatetime | None = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class StaffAssignment(BaseModel):
    id: str
    staff_id: str
    shift_id: str
    assigned_at: AwareDatetime
    check_in_time: AwareDatetime | None = None
    check_out_time: AwareDatetime | None = None
    status: AssignmentStatus = AssignmentStatus.SCHEDULED
    notes: str | None = Field(default=None, max_length=500)


class Shift(BaseModel):
    id: str
    event_id: str
    name: str = Field(..., max_length=100)
    start_time: AwareDatetime
    end_time: AwareDatetime
    required_staff: int = Field(default=1, ge=1, le=50)
    description: str | None = Field(default=None, max_length=300)
    status: ShiftStatus = ShiftStatus.OPEN
    staff_assignments: list[StaffAssignment] = Field(default_factory=list)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)


class Event(BaseModel):
    id: str
    name: str = Field(..., max_length=100)
    start_date: AwareDatetime
    end_date: AwareDatetime
    location: str = Field(..., max_length=200)
    description: str | None = Field(default=None, max_length=500)
    status: EventStatus = EventStatus.REQUESTED
    contact_person: str | None = Field(default=None, max_length=100)
    contact_phone: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=255)
    # True once a planning/confirmation email was delivered
    notification_sent: bool = False
    created_at: AwareDatetime = Field(default_factory=utc_now)
    updated_at: AwareDatetime | None = None
    shifts: list[Shift] = Field(default_factory=list)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_date, self.end_date)
