from datetime import datetime
from html import escape

from adaptonia.services.email_service import EmailMessage
from adaptonia.utils.timezone import to_utc_aware
from .schemas import GoalReminderEmail


REMINDER_SUBJECT = "🎯 Reminder: Time to work on your goal!"
NO_DUE_DATE = "No due date set"
FOOTER = "You are receiving this email because you set a reminder in the Adaptonia app."


def format_due_date(value: datetime) -> str:
    """Render as 'Weekday, Month Day, Year' in UTC, e.g. 'Monday, January 1, 2024'."""
    dt = to_utc_aware(value)
    return f"{dt:%A}, {dt:%B} {dt.day}, {dt.year}"


def build_goal_reminder_email(data: GoalReminderEmail) -> EmailMessage:
    greeting_name = data.user_name if data.has_user_name else "there"
    due_text = format_due_date(data.due_date) if data.has_due_date else NO_DUE_DATE

    description_html = ""
    description_text = ""
    if data.has_description:
        description_html = f"<p>{escape(data.goal_description)}</p>"
        description_text = f"{data.goal_description}\n"

    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; border: 1px solid #e0e0e0; border-radius: 8px; padding: 20px;">
        <h2 style="color: #333;">Hi {escape(greeting_name)},</h2>
        <p style="font-size: 16px;">This is a friendly reminder to make progress on your goal:</p>
        <div style="background-color: #f8f9fa; padding: 20px; border-radius: 5px; margin: 20px 0;">
          <h3 style="margin-top: 0; color: #0056b3;">{escape(data.goal_title)}</h3>
          {description_html}
          <p><strong>Due Date:</strong> {due_text}</p>
        </div>
        <p>Keep up the great work! Every step forward counts.</p>
        <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee;">
          <p style="color: #666; font-size: 14px;">
            {FOOTER}
          </p>
        </div>
      </div>
    """

    text = (
        f"Hi {greeting_name},\n\n"
        f"This is a friendly reminder to make progress on your goal:\n\n"
        f"{data.goal_title}\n"
        f"{description_text}"
        f"Due Date: {due_text}\n\n"
        f"Keep up the great work! Every step forward counts.\n\n"
        f"{FOOTER}\n"
    )

    return EmailMessage(to=[data.to], subject=REMINDER_SUBJECT, html=html, text=text)
