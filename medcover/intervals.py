"""
Half-open time intervals and shift containment.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from medcover.errors import InvalidIntervalError


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """
    The range [start, end). The end instant is excluded, so back-to-back
    intervals do not overlap.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidIntervalError(
                "End must be after start.",
                details={
                    "start": self.start.isoformat(),
                    "end": self.end.isoformat(),
                },
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


def find_uncontained_shifts(
    event_interval: TimeInterval, shift_intervals: Iterable[TimeInterval]
) -> list[int]:
    """
    Return the indices of shift intervals that start before or end after
    `event_interval`. An empty list means every shift is contained.
    """
    return [
        i
        for i, shift_interval in enumerate(shift_intervals)
        if not event_interval.contains(shift_interval)
    ]
