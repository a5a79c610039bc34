import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from adaptonia.api.deps import get_db, get_email_service
from adaptonia.api.errors import error_response
from adaptonia.reminders.dispatcher import ReminderDispatcher
from adaptonia.reminders.schemas import (
    DueNotification,
    DueNotificationsResponse,
    EmailSentResponse,
    GoalReminderEmail,
    UserReminderQuery,
)
from adaptonia.reminders.service import ReminderService
from adaptonia.reminders.templates import build_goal_reminder_email
from adaptonia.services.email_service import EmailDeliveryError, EmailService
from adaptonia.utils.timezone import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/due", response_model=DueNotificationsResponse)
async def check_due_notifications(
    payload: UserReminderQuery,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Dispatch the user's due reminders and return them as notifications.

    The notifications reflect the reminders as selected, before any status
    change made by this dispatch.
    """
    try:
        now = utc_now()
        due = ReminderService(db).select_due(user_id=payload.user_id, now=now)
        notifications = [DueNotification.model_validate(r, from_attributes=True) for r in due]
        outcomes = await ReminderDispatcher(db, email_service).dispatch_batch(due, now)
    except Exception as e:
        logger.error(f"Failed to fetch due notifications for user {payload.user_id}: {e}")
        return error_response(500, "Failed to fetch due notifications", str(e))

    delivered = sum(1 for o in outcomes if o.delivered)
    logger.info(f"Due check for user {payload.user_id}: {len(notifications)} due, {delivered} delivered")
    return DueNotificationsResponse(
        notifications=notifications,
        count=len(notifications),
        fetched_at=utc_now(),
    )


@router.post("/reminder", response_model=EmailSentResponse)
async def send_goal_reminder(
    payload: GoalReminderEmail,
    email_service: EmailService = Depends(get_email_service),
):
    """Send a single goal reminder email immediately."""
    message = build_goal_reminder_email(payload)
    try:
        result = await email_service.send(message)
    except EmailDeliveryError as e:
        logger.error(f"Failed to send goal reminder to {payload.to}: {e}")
        return error_response(500, "Failed to send email", str(e))
    except Exception as e:
        logger.error(f"Unexpected error sending goal reminder to {payload.to}: {e}")
        return error_response(500, "Internal server error", str(e))

    logger.info(f"Goal reminder email sent to {payload.to} (id={result.id})")
    return EmailSentResponse(id=result.id)
