import asyncio
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import make_msgid
from typing import List, Optional, Union

import httpx
from pydantic import BaseModel, field_validator

from adaptonia.core.config import settings

logger = logging.getLogger(__name__)


class EmailConfigurationError(ValueError):
    """Raised when the selected email provider is missing required settings."""


class EmailDeliveryError(Exception):
    """Raised when the provider rejects or cannot accept a message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmailMessage(BaseModel):
    to: List[str]
    subject: str
    html: str
    text: Optional[str] = None

    @field_validator("to", mode="before")
    @classmethod
    def wrap_single_recipient(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            return [v]
        return v


class EmailSendResult(BaseModel):
    id: str


class EmailService:
    """Base class for transactional email providers."""

    def __init__(self, from_email: str):
        self.from_email = from_email

    async def send(self, message: EmailMessage) -> EmailSendResult:
        raise NotImplementedError


class ResendEmailService(EmailService):
    """Sends through the Resend HTTP API (POST /emails)."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(from_email)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def send(self, message: EmailMessage) -> EmailSendResult:
        payload = {
            "from": self.from_email,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.text is not None:
            payload["text"] = message.text
        headers = {"Authorization": f"Bearer {self.api_key}"}
        url = f"{self.base_url}/emails"

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"[Email] Resend request failed: {e!r}")
            raise EmailDeliveryError(f"Email provider unreachable: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            logger.warning(f"[Email] Resend rejected message ({response.status_code}): {detail}")
            raise EmailDeliveryError(detail, status_code=response.status_code)

        message_id = response.json().get("id")
        if not message_id:
            raise EmailDeliveryError("Email provider returned no message id", status_code=response.status_code)
        logger.info(f"[Email] Sent '{message.subject}' to {', '.join(message.to)} (id={message_id})")
        return EmailSendResult(id=message_id)


class SmtpEmailService(EmailService):
    """Sends over SMTP; blocking I/O runs in a worker thread."""

    def __init__(self, smtp_server: str, smtp_port: int, smtp_username: str, smtp_password: str, from_email: str):
        super().__init__(from_email)
        self.smtp_server = smtp_server
        self.smtp_port = int(smtp_port)
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password

    def _build_mime(self, message: EmailMessage, message_id: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = self.from_email
        msg["To"] = ", ".join(message.to)
        msg["Message-ID"] = message_id
        if message.text is not None:
            msg.attach(MIMEText(message.text, "plain"))
        msg.attach(MIMEText(message.html, "html"))
        return msg

    def _send_blocking(self, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        if self.smtp_port == 465:
            with smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, context=context) as server:
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        else:
            # STARTTLS for 587 and other submission ports
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls(context=context)
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

    async def send(self, message: EmailMessage) -> EmailSendResult:
        message_id = make_msgid(domain=self.smtp_server)
        msg = self._build_mime(message, message_id)
        try:
            await asyncio.to_thread(self._send_blocking, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"[Email] SMTP delivery via {self.smtp_server}:{self.smtp_port} failed: {e!r}")
            raise EmailDeliveryError(f"SMTP error: {e}") from e
        logger.info(f"[Email] Sent '{message.subject}' to {', '.join(message.to)} via SMTP")
        return EmailSendResult(id=message_id.strip("<>"))


def build_email_service() -> EmailService:
    """Create the provider selected by EMAIL_PROVIDER, validating its settings."""
    if settings.EMAIL_PROVIDER == "smtp":
        missing = [
            name for name in ("SMTP_SERVER", "SMTP_USERNAME", "SMTP_PASSWORD")
            if not getattr(settings, name, None)
        ]
        if missing:
            raise EmailConfigurationError(f"Missing SMTP configuration: {', '.join(missing)}")
        return SmtpEmailService(
            smtp_server=settings.SMTP_SERVER,
            smtp_port=settings.SMTP_PORT,
            smtp_username=settings.SMTP_USERNAME,
            smtp_password=settings.SMTP_PASSWORD,
            from_email=settings.FROM_EMAIL,
        )

    if not settings.RESEND_API_KEY:
        raise EmailConfigurationError("RESEND_API_KEY is required but not configured")
    return ResendEmailService(
        api_key=settings.RESEND_API_KEY,
        from_email=settings.FROM_EMAIL,
        base_url=settings.RESEND_API_URL,
    )
