"""Tests for the HTTP surface: due checks, reminder emails, reminders CRUD, cron."""

from datetime import timedelta

import pytest

from conftest import make_reminder, reload
from adaptonia.core.config import settings
from adaptonia.reminders.repository import mark_sent
from adaptonia.utils.timezone import utc_now


# --- Health ---


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    d = r.json()
    assert d["status"] == "healthy"
    assert d["database"] == "healthy"


# --- Due notifications ---


def test_due_requires_user_id(client, email_service):
    r = client.post("/api/v1/notifications/due", json={})
    assert r.status_code == 400
    d = r.json()
    assert d["success"] is False
    assert "userId" in d["error"]
    assert email_service.sent == []


def test_due_dispatches_and_returns_notifications(client, db, email_service):
    due = make_reminder(db, user_id="user-1", goal_id="goal-9")
    make_reminder(db, user_id="user-1", send_date=utc_now() + timedelta(hours=2))
    make_reminder(db, user_id="user-2", user_email="other@example.com")

    r = client.post("/api/v1/notifications/due", json={"userId": "user-1"})

    assert r.status_code == 200
    d = r.json()
    assert d["success"] is True
    assert d["count"] == 1
    [n] = d["notifications"]
    assert n["id"] == due.id
    assert n["goalId"] == "goal-9"
    assert n["userId"] == "user-1"
    assert n["title"] == "Run a 5k"
    assert "sendDate" in n
    assert "fetchedAt" in d
    assert email_service.recipients == ["ada@example.com"]
    assert reload(db, due.id).status == "sent"


def test_due_reports_reminder_even_when_send_fails(client, db, email_service):
    email_service.fail_for.add("ada@example.com")
    r1 = make_reminder(db)

    r = client.post("/api/v1/notifications/due", json={"userId": "user-1"})

    assert r.status_code == 200
    assert r.json()["count"] == 1
    stored = reload(db, r1.id)
    assert stored.status == "pending"
    assert stored.retry_count == 1


def test_due_is_limited_to_ten(client, db):
    for i in range(12):
        make_reminder(db, title=f"goal {i}", send_date=utc_now() - timedelta(minutes=30 - i))

    r = client.post("/api/v1/notifications/due", json={"userId": "user-1"})
    assert r.json()["count"] == 10


def test_due_nothing_due(client):
    r = client.post("/api/v1/notifications/due", json={"userId": "nobody"})
    assert r.status_code == 200
    assert r.json()["notifications"] == []
    assert r.json()["count"] == 0


# --- Reminder email ---


def test_send_reminder_email(client, email_service):
    r = client.post(
        "/api/v1/notifications/reminder",
        json={
            "to": "ada@example.com",
            "userName": "Ada",
            "goalTitle": "Learn Spanish",
            "goalDescription": "20 minutes of vocabulary",
            "dueDate": "2024-01-01T00:00:00Z",
        },
    )

    assert r.status_code == 200
    assert r.json() == {"success": True, "id": "email-1"}
    [message] = email_service.sent
    assert "Monday, January 1, 2024" in message.html


@pytest.mark.parametrize("body", [{"to": "ada@example.com"}, {"goalTitle": "Stretch"}, {"to": "", "goalTitle": "x"}])
def test_send_reminder_email_missing_fields(client, email_service, body):
    r = client.post("/api/v1/notifications/reminder", json=body)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert email_service.sent == []


def test_send_reminder_email_provider_failure(client, email_service):
    email_service.fail_for.add("ada@example.com")
    r = client.post("/api/v1/notifications/reminder", json={"to": "ada@example.com", "goalTitle": "Stretch"})

    assert r.status_code == 500
    d = r.json()
    assert d == {"success": False, "error": "Failed to send email", "details": "Recipient ada@example.com rejected"}


# --- Reminders ---


def test_create_and_get_reminder(client):
    r = client.post(
        "/api/v1/reminders",
        json={
            "goalId": "goal-1",
            "userId": "user-1",
            "title": "Meditate",
            "sendDate": "2030-01-01T09:00:00Z",
            "userEmail": "ada@example.com",
        },
    )
    assert r.status_code == 201
    created = r.json()
    assert created["status"] == "pending"
    assert created["retryCount"] == 0
    assert created["goalId"] == "goal-1"
    assert created["sendDate"].startswith("2030-01-01T09:00:00")

    r = client.get(f"/api/v1/reminders/{created['id']}")
    assert r.status_code == 200
    assert r.json()["title"] == "Meditate"


def test_create_reminder_missing_fields(client):
    r = client.post("/api/v1/reminders", json={"userId": "user-1"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_get_reminder_not_found(client):
    r = client.get("/api/v1/reminders/missing")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Reminder not found"}


def test_list_reminders_by_status(client, db):
    a = make_reminder(db)
    make_reminder(db)
    mark_sent(db, a.id)

    r = client.get("/api/v1/reminders", params={"userId": "user-1", "status": "sent"})
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == [a.id]


def test_pending_reminders_lookahead(client, db):
    soon = make_reminder(db, send_date=utc_now() + timedelta(hours=1))
    make_reminder(db, send_date=utc_now() + timedelta(days=2))
    make_reminder(db, send_date=utc_now() - timedelta(hours=1))

    r = client.post("/api/v1/reminders/pending", json={"userId": "user-1"})

    assert r.status_code == 200
    d = r.json()
    assert d["count"] == 1
    assert d["reminders"][0]["id"] == soon.id
    assert d["reminders"][0]["source"] == "server"


def test_pending_reminders_requires_user_id(client):
    r = client.post("/api/v1/reminders/pending", json={"userId": "   "})
    assert r.status_code == 400


# --- Cron ---


def test_cron_skipped_without_secret(client, db, email_service, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", None)
    make_reminder(db)

    r = client.get("/api/v1/cron/email-reminders")

    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["processedCount"] == 0
    assert email_service.sent == []


@pytest.mark.parametrize("header", [None, "Bearer wrong", "s3cret"])
def test_cron_rejects_bad_auth(client, monkeypatch, header):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
    headers = {"Authorization": header} if header else {}

    r = client.get("/api/v1/cron/email-reminders", headers=headers)

    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Unauthorized"}


def test_cron_processes_all_users(client, db, email_service, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
    make_reminder(db, user_id="user-1", user_email="one@example.com")
    make_reminder(db, user_id="user-2", user_email="bad@example.com")
    email_service.fail_for.add("bad@example.com")

    r = client.get("/api/v1/cron/email-reminders", headers={"Authorization": "Bearer s3cret"})

    assert r.status_code == 200
    d = r.json()
    assert d["success"] is True
    assert d["message"] == "Processed 2 email reminders"
    assert d["results"]["processed"] == 2
    assert d["results"]["successful"] == 1
    assert d["results"]["failed"] == 1
    assert d["results"]["errors"][0]["error"] == "Recipient bad@example.com rejected"


def test_cron_with_nothing_due(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
    r = client.get("/api/v1/cron/email-reminders", headers={"Authorization": "Bearer s3cret"})
    assert r.json()["message"] == "No due email reminders found"
    assert r.json()["results"]["processed"] == 0


def test_delete_goal_reminders(client, db):
    make_reminder(db, goal_id="goal-a")
    make_reminder(db, goal_id="goal-a")
    other = make_reminder(db, goal_id="goal-b")

    r = client.delete("/api/v1/reminders/goal/goal-a")

    assert r.status_code == 200
    assert r.json() == {"success": True, "deleted": 2}
    assert [x["id"] for x in client.get("/api/v1/reminders").json()] == [other.id]
