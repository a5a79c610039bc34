import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from adaptonia.api.deps import get_db, get_email_service, verify_cron_secret
from adaptonia.api.errors import error_response
from adaptonia.reminders.dispatcher import run_dispatch_cycle
from adaptonia.reminders.schemas import CronRunResponse
from adaptonia.services.email_service import EmailService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/email-reminders")
async def run_email_reminders(
    authorized: bool = Depends(verify_cron_secret),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Scheduler entry point: dispatch due reminders for all users.

    Requires ``Authorization: Bearer <CRON_SECRET>``. Without a configured
    secret the run is skipped and reported as a success.
    """
    if not authorized:
        logger.warning("Email reminder cron skipped: CRON_SECRET is not configured")
        return {
            "success": True,
            "message": "Cron job skipped - missing required environment variables",
            "processedCount": 0,
        }

    try:
        results = await run_dispatch_cycle(db, email_service)
    except Exception as e:
        logger.error(f"Email reminder cron failed: {e}")
        return error_response(500, "Failed to process email reminders", str(e))

    if results.processed == 0 and results.skipped == 0:
        message = "No due email reminders found"
    else:
        message = f"Processed {results.processed} email reminders"
    return CronRunResponse(message=message, results=results).model_dump(by_alias=True)
