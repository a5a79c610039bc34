"""Tests for the goal reminder email template."""

from datetime import datetime, timedelta, timezone

from adaptonia.reminders.schemas import GoalReminderEmail
from adaptonia.reminders.templates import (
    FOOTER,
    NO_DUE_DATE,
    REMINDER_SUBJECT,
    build_goal_reminder_email,
    format_due_date,
)


def test_format_due_date():
    assert format_due_date(datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)) == "Monday, January 1, 2024"


def test_format_due_date_uses_utc():
    # 23:00 in UTC-05:00 is already the next day in UTC
    value = datetime(2024, 3, 14, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert format_due_date(value) == "Friday, March 15, 2024"


def test_full_email():
    message = build_goal_reminder_email(
        GoalReminderEmail(
            to="ada@example.com",
            user_name="Ada",
            goal_title="Learn Spanish",
            goal_description="Practice vocabulary for 20 minutes",
            due_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    )

    assert message.to == ["ada@example.com"]
    assert message.subject == REMINDER_SUBJECT
    assert "Hi Ada," in message.html
    assert "Learn Spanish" in message.html
    assert "Practice vocabulary for 20 minutes" in message.html
    assert "Monday, January 1, 2024" in message.html
    assert FOOTER in message.html
    assert message.text.startswith("Hi Ada,")
    assert "Due Date: Monday, January 1, 2024" in message.text


def test_optional_fields_missing():
    message = build_goal_reminder_email(GoalReminderEmail(to="ada@example.com", goal_title="Stretch"))

    assert "Hi there," in message.html
    assert NO_DUE_DATE in message.html
    assert f"Due Date: {NO_DUE_DATE}" in message.text
    assert "<p></p>" not in message.html


def test_blank_optional_fields_are_treated_as_missing():
    data = GoalReminderEmail.model_validate(
        {"to": "ada@example.com", "goalTitle": "Stretch", "userName": "  ", "goalDescription": "", "dueDate": ""}
    )
    assert not data.has_user_name
    assert not data.has_description
    assert not data.has_due_date


def test_content_is_html_escaped():
    message = build_goal_reminder_email(
        GoalReminderEmail(to="ada@example.com", user_name="<b>Ada</b>", goal_title="Tom & Jerry")
    )
    assert "Hi &lt;b&gt;Ada&lt;/b&gt;," in message.html
    assert "Tom &amp; Jerry" in message.html
    assert "Tom & Jerry" in message.text
