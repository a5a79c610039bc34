from datetime import datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from .config import settings
from .models import Reminder
from .schemas import ReminderCreate
from .repository import create_reminder, delete_reminders_for_goal, get_due_reminders, get_upcoming_reminders
from .metrics import reminders_created_total, scheduler_scans_total
from adaptonia.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class ReminderService:
    """Creation and selection of reminders for a single session."""

    def __init__(self, db: Session):
        self.db = db

    def create_reminder(self, data: ReminderCreate) -> Reminder:
        reminder = create_reminder(self.db, data)
        reminders_created_total.inc()
        logger.info(f"[Reminders] Created reminder {reminder.id} for user {reminder.user_id} (goal {reminder.goal_id})")
        return reminder

    def delete_goal_reminders(self, goal_id: str) -> int:
        deleted = delete_reminders_for_goal(self.db, goal_id)
        logger.info(f"[Reminders] Deleted {deleted} reminders for goal {goal_id}")
        return deleted

    def select_due(
        self,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Reminder]:
        """Pending reminders due at or before now.

        Store errors propagate; the caller aborts the cycle.
        """
        now = now or utc_now()
        if limit is None:
            limit = settings.DUE_BATCH_SIZE if user_id is not None else settings.SCHEDULER_BATCH_SIZE
        due = get_due_reminders(self.db, now, user_id=user_id, limit=limit)
        scheduler_scans_total.inc()
        logger.info(
            f"[Reminders] Found {len(due)} due reminders"
            + (f" for user {user_id}" if user_id is not None else "")
            + f" at {now.isoformat()}"
        )
        return due

    def select_upcoming(self, user_id: str, now: Optional[datetime] = None) -> List[Reminder]:
        """Pending reminders due within the lookahead window."""
        now = now or utc_now()
        upcoming = get_upcoming_reminders(
            self.db,
            now,
            user_id=user_id,
            window=timedelta(hours=settings.PENDING_WINDOW_HOURS),
            limit=settings.PENDING_BATCH_SIZE,
        )
        logger.info(f"[Reminders] Found {len(upcoming)} pending reminders for user {user_id}")
        return upcoming
