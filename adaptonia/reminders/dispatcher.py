import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from adaptonia.services.email_service import EmailMessage, EmailService
from adaptonia.utils.timezone import utc_now
from .config import settings
from .metrics import (
    reminders_dispatch_success_total,
    reminders_dispatch_failed_total,
    reminders_exhausted_total,
    reminders_claim_skipped_total,
    reminder_status_write_errors_total,
)
from .models import Reminder, REMINDER_STATUS_PENDING, REMINDER_STATUS_SENT, REMINDER_STATUS_FAILED
from .notifier import DispatchNotifier, reminder_notifier
from .repository import claim_reminder, mark_sent, mark_failed, record_retry
from .schemas import DispatchOutcome, DispatchResults, GoalReminderEmail
from .service import ReminderService
from .templates import build_goal_reminder_email

logger = logging.getLogger(__name__)


class ReminderDispatcher:
    """Sends reminder emails and records the resulting status.

    ``dispatch`` never raises for delivery or status-write problems; every
    outcome is returned as a DispatchOutcome so a batch keeps going.
    """

    def __init__(
        self,
        db: Session,
        email_service: EmailService,
        notifier: Optional[DispatchNotifier] = None,
        max_retries: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        claim_lease_seconds: Optional[int] = None,
    ):
        self.db = db
        self.email_service = email_service
        self.notifier = notifier or reminder_notifier
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.DISPATCH_TIMEOUT_SECONDS
        self.claim_lease_seconds = (
            claim_lease_seconds if claim_lease_seconds is not None else settings.CLAIM_LEASE_SECONDS
        )

    @staticmethod
    def build_email(reminder: Reminder) -> EmailMessage:
        if not reminder.user_email:
            raise ValueError(f"Reminder {reminder.id} is missing an email address.")
        data = GoalReminderEmail(
            to=reminder.user_email,
            user_name=reminder.user_name,
            goal_title=reminder.title,
            goal_description=reminder.description,
            due_date=reminder.send_date,
        )
        return build_goal_reminder_email(data)

    def _write(self, writer: Callable[..., bool], *args) -> bool:
        try:
            return writer(self.db, *args)
        except Exception as e:
            reminder_status_write_errors_total.inc()
            logger.error(f"[Reminders] Status write {writer.__name__}{args} failed: {e!r}")
            self.db.rollback()
            return False

    async def dispatch(self, reminder: Reminder, now: Optional[datetime] = None) -> DispatchOutcome:
        now = now or utc_now()
        reminder_id = reminder.id
        title = reminder.title
        selected_retry_count = reminder.retry_count or 0

        if self.claim_lease_seconds > 0:
            try:
                claimed = claim_reminder(self.db, reminder_id, now, self.claim_lease_seconds)
            except Exception as e:
                self.db.rollback()
                logger.error(f"[Reminders] Could not claim reminder {reminder_id}: {e!r}")
                return DispatchOutcome(
                    reminder_id=reminder_id, delivered=False, skipped=True,
                    status=REMINDER_STATUS_PENDING, retry_count=selected_retry_count, error=str(e),
                )
            if not claimed:
                reminders_claim_skipped_total.inc()
                logger.info(f"[Reminders] Reminder {reminder_id} is claimed by another cycle, skipping")
                return DispatchOutcome(
                    reminder_id=reminder_id, delivered=False, skipped=True,
                    status=REMINDER_STATUS_PENDING, retry_count=selected_retry_count,
                )

        # Reload after the claim; another cycle may have recorded a failure since selection
        retry_count = reminder.retry_count or 0

        try:
            message = self.build_email(reminder)
            result = await asyncio.wait_for(self.email_service.send(message), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            return self._record_failure(reminder_id, title, retry_count, f"Email dispatch timed out after {self.timeout_seconds}s")
        except Exception as e:
            return self._record_failure(reminder_id, title, retry_count, str(e) or e.__class__.__name__)

        reminders_dispatch_success_total.inc()
        logger.info(f"[Reminders] Reminder {reminder_id} delivered (email id={result.id})")
        self._write(mark_sent, reminder_id)
        self.notifier.announce_sent(reminder_id, title)
        return DispatchOutcome(
            reminder_id=reminder_id, delivered=True, status=REMINDER_STATUS_SENT, retry_count=retry_count,
        )

    def _record_failure(self, reminder_id: str, title: str, retry_count: int, error: str) -> DispatchOutcome:
        reminders_dispatch_failed_total.inc()
        new_retry_count = min(retry_count + 1, self.max_retries)

        if new_retry_count >= self.max_retries:
            status = REMINDER_STATUS_FAILED
            self._write(mark_failed, reminder_id, new_retry_count)
            reminders_exhausted_total.inc()
            logger.warning(
                f"[Reminders] Reminder {reminder_id} marked failed after {new_retry_count} attempts: {error}"
            )
        else:
            status = REMINDER_STATUS_PENDING
            self._write(record_retry, reminder_id, new_retry_count)
            logger.warning(
                f"[Reminders] Reminder {reminder_id} attempt {new_retry_count}/{self.max_retries} failed: {error}"
            )

        self.notifier.announce_failure(reminder_id, title, error)
        return DispatchOutcome(
            reminder_id=reminder_id, delivered=False, status=status, retry_count=new_retry_count, error=error,
        )

    async def dispatch_batch(self, reminders: List[Reminder], now: Optional[datetime] = None) -> List[DispatchOutcome]:
        """Dispatch all reminders concurrently; one failure never aborts the others."""
        if not reminders:
            return []
        now = now or utc_now()
        return list(await asyncio.gather(*(self.dispatch(r, now) for r in reminders)))


async def run_dispatch_cycle(
    db: Session,
    email_service: EmailService,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
    notifier: Optional[DispatchNotifier] = None,
) -> DispatchResults:
    """Select due reminders and dispatch them.

    Selection errors propagate so the whole cycle is retried on the next
    trigger; per-reminder errors are reported in the results.
    """
    now = now or utc_now()
    due = ReminderService(db).select_due(user_id=user_id, now=now, limit=limit)
    dispatcher = ReminderDispatcher(db, email_service, notifier=notifier)
    outcomes = await dispatcher.dispatch_batch(due, now)
    results = DispatchResults.from_outcomes(outcomes)
    logger.info(
        f"[Reminders] Cycle complete - processed={results.processed} successful={results.successful} "
        f"failed={results.failed} skipped={results.skipped}"
    )
    return results
