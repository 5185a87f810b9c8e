from datetime import UTC, datetime, timedelta

import pytest

from medcover.errors import InvalidIntervalError
from medcover.intervals import TimeInterval, find_uncontained_shifts

NINE = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
FIVE = datetime(2024, 1, 1, 17, 0, tzinfo=UTC)


def test_interval_rejects_start_not_before_end() -> None:
    with pytest.raises(InvalidIntervalError):
        TimeInterval(FIVE, NINE)
    with pytest.raises(InvalidIntervalError):
        TimeInterval(NINE, NINE)


def test_touching_intervals_do_not_overlap() -> None:
    day = TimeInterval(NINE, FIVE)
    evening = TimeInterval(FIVE, FIVE + timedelta(hours=3))
    assert not day.overlaps(evening)
    assert not evening.overlaps(day)


def test_one_minute_overlap_counts() -> None:
    day = TimeInterval(NINE, FIVE)
    evening = TimeInterval(FIVE - timedelta(minutes=1), FIVE + timedelta(hours=3))
    assert day.overlaps(evening)
    assert evening.overlaps(day)


def test_contains_is_inclusive_of_both_bounds() -> None:
    day = TimeInterval(NINE, FIVE)
    assert day.contains(day)
    assert day.contains(TimeInterval(NINE + timedelta(hours=1), FIVE))
    assert not day.contains(TimeInterval(NINE - timedelta(seconds=1), FIVE))
    assert not day.contains(TimeInterval(NINE, FIVE + timedelta(seconds=1)))


def test_find_uncontained_shifts_reports_indices() -> None:
    event = TimeInterval(NINE, FIVE)
    shifts = [
        TimeInterval(NINE, NINE + timedelta(hours=4)),
        TimeInterval(NINE - timedelta(hours=1), NINE + timedelta(hours=1)),
        TimeInterval(NINE + timedelta(hours=4), FIVE),
        TimeInterval(FIVE - timedelta(hours=1), FIVE + timedelta(hours=1)),
    ]
    assert find_uncontained_shifts(event, shifts) == [1, 3]


def test_find_uncontained_shifts_empty_when_all_contained() -> None:
    event = TimeInterval(NINE, FIVE)
    assert find_uncontained_shifts(event, [TimeInterval(NINE, FIVE)]) == []
    assert find_uncontained_shifts(event, []) == []
