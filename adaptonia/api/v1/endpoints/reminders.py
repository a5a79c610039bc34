from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from adaptonia.api.deps import get_db
from adaptonia.api.errors import error_response
from adaptonia.reminders.repository import get_reminder, list_reminders
from adaptonia.reminders.schemas import (
    PendingReminder,
    PendingRemindersResponse,
    ReminderCreate,
    ReminderRead,
    RemindersDeletedResponse,
    ReminderStatus,
    UserReminderQuery,
)
from adaptonia.reminders.service import ReminderService
from adaptonia.utils.timezone import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/pending", response_model=PendingRemindersResponse)
def get_pending_reminders(payload: UserReminderQuery, db: Session = Depends(get_db)):
    """Pending reminders for a user that fall due within the lookahead window."""
    try:
        upcoming = ReminderService(db).select_upcoming(payload.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch pending reminders for user {payload.user_id}: {e}")
        return error_response(500, "Failed to fetch pending reminders", str(e))

    reminders = [PendingReminder.model_validate(r, from_attributes=True) for r in upcoming]
    return PendingRemindersResponse(reminders=reminders, count=len(reminders), fetched_at=utc_now())


@router.post("", response_model=ReminderRead, status_code=201)
def create_reminder_endpoint(payload: ReminderCreate, db: Session = Depends(get_db)):
    try:
        reminder = ReminderService(db).create_reminder(payload)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create reminder for goal {payload.goal_id}: {e}")
        return error_response(500, "Failed to create reminder", str(e))
    return ReminderRead.model_validate(reminder)


@router.get("", response_model=List[ReminderRead])
def list_reminders_endpoint(
    user_id: Optional[str] = Query(None, alias="userId"),
    goal_id: Optional[str] = Query(None, alias="goalId"),
    status: Optional[ReminderStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    rows = list_reminders(db, user_id=user_id, goal_id=goal_id, status=status, limit=limit)
    return [ReminderRead.model_validate(r) for r in rows]


@router.get("/{reminder_id}", response_model=ReminderRead)
def get_reminder_endpoint(reminder_id: str, db: Session = Depends(get_db)):
    reminder = get_reminder(db, reminder_id)
    if not reminder:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return ReminderRead.model_validate(reminder)


@router.delete("/goal/{goal_id}", response_model=RemindersDeletedResponse)
def delete_goal_reminders_endpoint(goal_id: str, db: Session = Depends(get_db)):
    """Remove all reminders of a goal, e.g. when the goal itself is deleted."""
    try:
        deleted = ReminderService(db).delete_goal_reminders(goal_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete reminders for goal {goal_id}: {e}")
        return error_response(500, "Failed to delete reminders", str(e))
    return RemindersDeletedResponse(deleted=deleted)
