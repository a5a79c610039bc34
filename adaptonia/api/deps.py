import logging
import secrets
from typing import Generator, Optional

from fastapi import Header, HTTPException, status

from adaptonia.core.config import settings
from adaptonia.db.session import SessionLocal
from adaptonia.services.email_service import EmailConfigurationError, EmailService, build_email_service

logger = logging.getLogger(__name__)


def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_email_service() -> EmailService:
    try:
        return build_email_service()
    except EmailConfigurationError as e:
        logger.error(f"Email service unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Email service not configured: {e}",
        )


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> bool:
    """
    Check the scheduler's bearer token.

    Returns False when no CRON_SECRET is configured (the run is skipped),
    True when the token matches, and raises 401 otherwise.
    """
    if not settings.CRON_SECRET:
        return False
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not secrets.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return True
