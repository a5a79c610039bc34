"""Tests for the scheduled dispatch task and its beat schedule."""

from unittest.mock import patch

import pytest

from conftest import FakeEmailService, make_reminder, reload
from adaptonia.reminders.celery_app import celery_app
from adaptonia.reminders.config import settings as reminder_settings
from adaptonia.reminders.tasks import scan_and_dispatch_task


def test_beat_schedule_runs_scan():
    entry = celery_app.conf.beat_schedule["scan-and-dispatch"]
    assert entry["task"] == "reminders.scan_and_dispatch"
    assert entry["schedule"] == reminder_settings.SCHEDULER_SCAN_INTERVAL_SECONDS


def test_task_dispatches_due_reminders(db):
    email = FakeEmailService()
    r = make_reminder(db)

    with patch("adaptonia.reminders.tasks.build_email_service", return_value=email):
        result = scan_and_dispatch_task()

    assert result["processed"] == 1
    assert result["successful"] == 1
    assert email.recipients == ["ada@example.com"]
    assert reload(db, r.id).status == "sent"


def test_task_reraises_selection_errors():
    with patch("adaptonia.reminders.tasks.build_email_service", return_value=FakeEmailService()), patch(
        "adaptonia.reminders.dispatcher.ReminderService.select_due", side_effect=RuntimeError("db down")
    ):
        with pytest.raises(RuntimeError):
            scan_and_dispatch_task()
