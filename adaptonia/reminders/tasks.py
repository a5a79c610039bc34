import asyncio
from typing import Optional

from celery.utils.log import get_task_logger

from adaptonia.core.database_utils import get_db_session
from adaptonia.services.email_service import build_email_service
from .celery_app import celery_app
from .dispatcher import run_dispatch_cycle

logger = get_task_logger(__name__)


@celery_app.task(name="reminders.scan_and_dispatch")
def scan_and_dispatch_task(user_id: Optional[str] = None) -> dict:
    """Run one due-reminder cycle. Returns the dispatch results as JSON."""
    email_service = build_email_service()
    try:
        with get_db_session() as db:
            results = asyncio.run(run_dispatch_cycle(db, email_service, user_id=user_id))
    except Exception:
        logger.exception("Due reminder cycle aborted; will retry on next schedule")
        raise
    logger.info(f"Due reminder cycle: {results.successful} sent, {results.failed} failed")
    return results.model_dump(by_alias=True)
