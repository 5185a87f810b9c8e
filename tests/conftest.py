from datetime import datetime, timedelta

import pytest

from medcover.models import Event, EventStatus
from tests.factories import NOW, make_shift


@pytest.fixture
def event_start() -> datetime:
    return NOW + timedelta(days=2)


@pytest.fixture
def event(event_start: datetime) -> Event:
    """Requested event two days out, four hours long, with one full-length shift."""
    end = event_start + timedelta(hours=4)
    return Event(
        id="event-1",
        name="City Marathon",
        start_date=event_start,
        end_date=end,
        location="Harbour Park",
        status=EventStatus.REQUESTED,
        contact_person="Dana Reyes",
        contact_email="a@b.com",
        notification_sent=False,
        created_at=NOW - timedelta(days=1),
        shifts=[make_shift("shift-1", event_start, end)],
    )
