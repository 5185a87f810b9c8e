import json
import logging
import sys
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from medcover import notifier
from medcover.config import Settings, settings
from medcover.logging import JSONLineFormatter, get_logger
from medcover.models import Event, Staff, StaffRole
from tests.factories import NOW, make_shift


def _event(contact_email: str | None) -> Event:
    return Event(
        id="event-1",
        name="Marathon",
        start_date=NOW,
        end_date=NOW + timedelta(hours=2),
        location="Park",
        contact_email=contact_email,
    )


@pytest.mark.asyncio
async def test_missing_contact_email_is_skipped(monkeypatch) -> None:
    delivered = []

    async def fake_deliver(to: str, subject: str) -> None:
        delivered.append((to, subject))

    monkeypatch.setattr(notifier, "_deliver", fake_deliver)
    await notifier.send_event_planned_notification(_event(None))
    await notifier.send_event_invoice_notification(_event(""))
    assert delivered == []

    await notifier.send_event_invoice_notification(_event("a@b.com"))
    assert delivered == [("a@b.com", "Invoice for Event: Marathon")]


@pytest.mark.asyncio
async def test_assignment_notification_goes_to_staff(monkeypatch) -> None:
    delivered = []

    async def fake_deliver(to: str, subject: str) -> None:
        delivered.append((to, subject))

    monkeypatch.setattr(notifier, "_deliver", fake_deliver)
    staff = Staff(
        id="alice",
        first_name="Alice",
        last_name="Ongwele",
        email="alice@example.com",
        role=StaffRole.FIRST_AIDER,
    )
    shift = make_shift("shift-1", NOW, NOW + timedelta(hours=2))
    await notifier.send_staff_assignment_notification(staff, shift, _event("a@b.com"))

    (to, subject), = delivered
    assert to == "alice@example.com"
    assert subject.startswith("Shift Assignment: Marathon - Shift shift-1")


@pytest.mark.asyncio
async def test_disabled_notifications_skip_delivery(monkeypatch) -> None:
    fake_logger = MagicMock()
    monkeypatch.setattr(notifier, "logger", fake_logger)
    monkeypatch.setattr(notifier, "settings", Settings(notifications_enabled=False))

    await notifier.send_event_planned_notification(_event("a@b.com"))

    fake_logger.warning.assert_called_once()
    fake_logger.info.assert_not_called()


def test_settings_read_prefixed_environment() -> None:
    loaded = Settings.from_env(
        {
            "MEDCOVER_NOTIFICATIONS_ENABLED": "false",
            "MEDCOVER_DEFAULT_SHIFT_REQUIRED_STAFF": "3",
            "NOTIFICATIONS_ENABLED": "true",
        }
    )
    assert loaded.notifications_enabled is False
    assert loaded.default_shift_required_staff == 3
    assert loaded.default_shift_name == "Default Shift"


def test_settings_defaults_without_environment() -> None:
    assert Settings.from_env({}) == Settings()


def test_json_formatter_includes_extra_fields_and_error() -> None:
    try:
        raise ValueError("smtp down")
    except ValueError:
        record = logging.getLogger("medcover.test").makeRecord(
            "medcover.test",
            logging.ERROR,
            __file__,
            1,
            "Failed sending %s",
            ("invoice",),
            exc_info=sys.exc_info(),
            extra={"event_id": "event-1"},
        )
    data = json.loads(JSONLineFormatter().format(record))
    assert data["level"] == "ERROR"
    assert data["msg"] == "Failed sending invoice"
    assert data["event_id"] == "event-1"
    assert data["exc_type"] == "ValueError"
    assert "smtp down" in data["exc"]
    assert data["service"] == settings.service_name
    assert "args" not in data


def test_package_loggers_share_one_json_handler() -> None:
    get_logger("medcover.a")
    get_logger("medcover.b")
    root = logging.getLogger("medcover")
    json_handlers = [
        h for h in root.handlers if isinstance(h.formatter, JSONLineFormatter)
    ]
    assert len(json_handlers) == 1
