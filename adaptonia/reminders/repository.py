from datetime import datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy import delete, select, update, or_
from sqlalchemy.orm import Session

from .models import Reminder, REMINDER_STATUS_PENDING, REMINDER_STATUS_SENT, REMINDER_STATUS_FAILED
from .schemas import ReminderCreate, ReminderStatusUpdate
from adaptonia.utils.timezone import to_utc_naive, utc_now_naive

logger = logging.getLogger(__name__)


def create_reminder(db: Session, data: ReminderCreate) -> Reminder:
    reminder = Reminder(
        user_id=data.user_id,
        goal_id=data.goal_id,
        title=data.title,
        description=data.description,
        user_email=data.user_email,
        user_name=data.user_name,
        send_date=to_utc_naive(data.send_date),
        due_date=to_utc_naive(data.due_date),
        status=REMINDER_STATUS_PENDING,
        retry_count=0,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def get_reminder(db: Session, reminder_id: str) -> Optional[Reminder]:
    return db.get(Reminder, reminder_id)


def list_reminders(
    db: Session,
    user_id: Optional[str] = None,
    goal_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
) -> List[Reminder]:
    stmt = select(Reminder).order_by(Reminder.send_date.asc()).limit(limit)
    if user_id:
        stmt = stmt.where(Reminder.user_id == user_id)
    if goal_id:
        stmt = stmt.where(Reminder.goal_id == goal_id)
    if status:
        stmt = stmt.where(Reminder.status == status)
    return list(db.execute(stmt).scalars())


def delete_reminders_for_goal(db: Session, goal_id: str) -> int:
    """Remove every reminder of a goal, whatever its status. Returns the number deleted."""
    result = db.execute(
        delete(Reminder)
        .where(Reminder.goal_id == goal_id)
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    return result.rowcount


def get_due_reminders(
    db: Session,
    now: datetime,
    user_id: Optional[str] = None,
    limit: int = 10,
) -> List[Reminder]:
    """Pending reminders with send_date <= now, oldest first.

    ``user_id=None`` selects across all users (scheduled cycle).
    """
    stmt = (
        select(Reminder)
        .where(Reminder.status == REMINDER_STATUS_PENDING)
        .where(Reminder.send_date <= to_utc_naive(now))
        .order_by(Reminder.send_date.asc())
        .limit(limit)
    )
    if user_id is not None:
        stmt = stmt.where(Reminder.user_id == user_id)
    return list(db.execute(stmt).scalars())


def get_upcoming_reminders(
    db: Session,
    now: datetime,
    user_id: str,
    window: timedelta = timedelta(hours=24),
    limit: int = 100,
) -> List[Reminder]:
    """Pending reminders due within [now, now + window]."""
    start = to_utc_naive(now)
    stmt = (
        select(Reminder)
        .where(Reminder.user_id == user_id)
        .where(Reminder.status == REMINDER_STATUS_PENDING)
        .where(Reminder.send_date >= start)
        .where(Reminder.send_date <= start + window)
        .order_by(Reminder.send_date.asc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())


def _expire_cached(db: Session, reminder_id: str) -> None:
    # Bulk UPDATEs bypass the identity map; reload the instance on next access
    cached = db.identity_map.get(db.identity_key(Reminder, reminder_id))
    if cached is not None:
        db.expire(cached)


def claim_reminder(db: Session, reminder_id: str, now: datetime, lease_seconds: int) -> bool:
    """Take a dispatch lease on a pending reminder.

    Returns False when the reminder is no longer pending or another cycle
    holds an unexpired lease.
    """
    current = to_utc_naive(now)
    result = db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id)
        .where(Reminder.status == REMINDER_STATUS_PENDING)
        .where(or_(Reminder.claimed_until.is_(None), Reminder.claimed_until <= current))
        .values(claimed_until=current + timedelta(seconds=lease_seconds))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    _expire_cached(db, reminder_id)
    return result.rowcount == 1


def apply_status_update(db: Session, reminder_id: str, data: ReminderStatusUpdate) -> bool:
    """Apply a partial status/retry update to a pending reminder.

    Terminal reminders are never modified, so repeating a write is a no-op.
    Returns True when a row was changed. Releases any dispatch lease.
    """
    values = {"claimed_until": None, "updated_at": utc_now_naive()}
    if data.status is not None:
        values["status"] = data.status
        if data.status == REMINDER_STATUS_SENT:
            values["last_sent_date"] = values["updated_at"]
    if data.retry_count is not None:
        values["retry_count"] = data.retry_count

    result = db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id)
        .where(Reminder.status == REMINDER_STATUS_PENDING)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    _expire_cached(db, reminder_id)
    applied = result.rowcount == 1
    if not applied:
        logger.info(f"[Reminders] Status update for {reminder_id} ignored (missing or terminal)")
    return applied


def mark_sent(db: Session, reminder_id: str) -> bool:
    return apply_status_update(db, reminder_id, ReminderStatusUpdate(status=REMINDER_STATUS_SENT))


def mark_failed(db: Session, reminder_id: str, retry_count: int) -> bool:
    return apply_status_update(
        db, reminder_id, ReminderStatusUpdate(status=REMINDER_STATUS_FAILED, retry_count=retry_count)
    )


def record_retry(db: Session, reminder_id: str, retry_count: int) -> bool:
    return apply_status_update(db, reminder_id, ReminderStatusUpdate(retry_count=retry_count))
