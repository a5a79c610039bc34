"""
Reminder model - one row per scheduled goal reminder
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, Index
import uuid

from adaptonia.db.base import Base
from adaptonia.utils.timezone import utc_now_naive


REMINDER_STATUS_PENDING = "pending"
REMINDER_STATUS_SENT = "sent"
REMINDER_STATUS_FAILED = "failed"


class Reminder(Base):
    """Goal reminder. Timestamps are stored as UTC without tzinfo."""
    __tablename__ = "reminders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    goal_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    # Recipient details copied onto the reminder when it is created
    user_email = Column(String, nullable=True)
    user_name = Column(String, nullable=True)

    send_date = Column(DateTime, nullable=False, index=True)
    due_date = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default=REMINDER_STATUS_PENDING)
    retry_count = Column(Integer, nullable=False, default=0)

    # Dispatch lease; a reminder claimed by a running cycle is skipped by others
    claimed_until = Column(DateTime, nullable=True)
    last_sent_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utc_now_naive, nullable=False)
    updated_at = Column(DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)

    __table_args__ = (
        Index("ix_reminders_status_send_date", "status", "send_date"),
        Index("ix_reminders_user_status_send_date", "user_id", "status", "send_date"),
    )
