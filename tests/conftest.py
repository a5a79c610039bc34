"""Shared test fixtures: in-memory database, fake email provider, API client."""

import asyncio
import os
from datetime import timedelta

import pytest

# Must be set before importing adaptonia modules
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("CRON_SECRET", None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import delete  # noqa: E402

from adaptonia.api.deps import get_email_service  # noqa: E402
from adaptonia.db.base import init_db  # noqa: E402
from adaptonia.db.session import SessionLocal, engine  # noqa: E402
from adaptonia.main import app  # noqa: E402
from adaptonia.reminders.models import Reminder  # noqa: E402
from adaptonia.reminders.notifier import reminder_notifier  # noqa: E402
from adaptonia.reminders.repository import create_reminder  # noqa: E402
from adaptonia.reminders.schemas import ReminderCreate  # noqa: E402
from adaptonia.services.email_service import (  # noqa: E402
    EmailDeliveryError,
    EmailSendResult,
    EmailService,
)
from adaptonia.utils.timezone import utc_now  # noqa: E402

init_db(engine)


class FakeEmailService(EmailService):
    """Records messages; fails for addresses in ``fail_for``."""

    def __init__(self):
        super().__init__("Adaptonia <reminders@example.com>")
        self.sent = []
        self.fail_for = set()
        self.delay = 0.0

    async def send(self, message):
        if self.delay:
            await asyncio.sleep(self.delay)
        recipient = message.to[0]
        if recipient in self.fail_for:
            raise EmailDeliveryError(f"Recipient {recipient} rejected", status_code=422)
        self.sent.append(message)
        return EmailSendResult(id=f"email-{len(self.sent)}")

    @property
    def recipients(self):
        return [m.to[0] for m in self.sent]


def make_reminder(db, **overrides) -> Reminder:
    """Create a pending reminder that is already due, with defaults."""
    data = {
        "goal_id": "goal-1",
        "user_id": "user-1",
        "title": "Run a 5k",
        "description": "Three short runs this week",
        "send_date": utc_now() - timedelta(minutes=5),
        "user_email": "ada@example.com",
        "user_name": "Ada",
    }
    data.update(overrides)
    return create_reminder(db, ReminderCreate(**data))


def reload(db, reminder_id) -> Reminder:
    db.expire_all()
    return db.get(Reminder, reminder_id)


@pytest.fixture(autouse=True)
def fresh_db():
    """Empty the reminders table and the notifier before each test."""
    with engine.begin() as conn:
        conn.execute(delete(Reminder))
    reminder_notifier.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def client(email_service):
    app.dependency_overrides[get_email_service] = lambda: email_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
