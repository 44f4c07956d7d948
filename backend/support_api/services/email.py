"""
Email service for sending transactional emails.

WHAT: This service provides a unified interface for sending ticket emails
through one of several providers (Resend API, SMTP, or a mock provider).

WHY: Email is how the support desk learns about new tickets and how
customers learn about status changes. The provider is a deployment
choice; ticket code should not care which one is in use.

HOW: A provider abstraction with:
- ResendProvider: Resend HTTP API via httpx
- SmtpProvider: STARTTLS SMTP via smtplib, run in a worker thread
- MockEmailProvider: records messages, used when nothing is configured

Providers report failures as ``EmailResult(success=False)``; deciding
whether a failure is fatal is left to the caller.
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from enum import Enum
from typing import Optional, Dict, Any, List
from urllib.parse import urlparse

import httpx

from support_api.core.config import settings
from support_api.core.exceptions import EmailServiceError

logger = logging.getLogger(__name__)


# ============================================================================
# Email Types
# ============================================================================


class EmailType(str, Enum):
    """
    Types of transactional emails.

    WHY: Lets logs and tests tell staff alerts from customer updates.
    """

    TICKET_CREATED = "ticket_created"
    """New ticket alert sent to the support mailbox."""

    TICKET_UPDATED = "ticket_updated"
    """Status change notice sent to the customer."""


@dataclass
class EmailMessage:
    """
    Represents an email to be sent.

    WHAT: Data container for email content and metadata.
    """

    to_email: str
    """Recipient email address."""

    subject: str
    """Email subject line."""

    html_content: str
    """HTML email body."""

    text_content: Optional[str] = None
    """Plain text fallback."""

    from_email: Optional[str] = None
    """Sender email (defaults to configured sender)."""

    reply_to: Optional[str] = None
    """Reply-to address."""

    email_type: EmailType = EmailType.TICKET_CREATED
    """Type of email for tracking/logging."""

    metadata: Optional[Dict[str, Any]] = None
    """Additional metadata for tracking."""


@dataclass
class EmailResult:
    """
    Result of an email send operation.
    """

    success: bool
    """Whether email was sent successfully."""

    message_id: Optional[str] = None
    """Provider message ID for tracking."""

    error: Optional[str] = None
    """Error message if send failed."""

    provider: Optional[str] = None
    """Which provider was used."""


def default_sender() -> str:
    """
    Sender address used when a message has none.

    Prefers ``EMAIL_FROM``, then the SMTP login, then ``noreply@`` on the
    host of ``BASE_URL``.
    """
    if settings.EMAIL_FROM:
        return settings.EMAIL_FROM
    if settings.SMTP_USER:
        return settings.SMTP_USER
    host = urlparse(settings.base_url).hostname or "localhost"
    return f"noreply@{host}"


# ============================================================================
# Email Provider Interface
# ============================================================================


class EmailProvider(ABC):
    """
    Abstract base class for email providers.
    """

    name: str = "abstract"

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: The email message to send

        Returns:
            EmailResult with success status and provider details
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if this provider is properly configured.

        Returns:
            True if API keys/credentials are present
        """
        pass


class ResendProvider(EmailProvider):
    """
    Resend email provider implementation.
    """

    name = "resend"
    api_url = "https://api.resend.com/emails"

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        """
        Initialize Resend provider.

        Args:
            api_key: Resend API key (defaults to settings)
            from_email: Default sender (defaults to configured sender)
        """
        self._api_key = api_key or settings.RESEND_API_KEY
        self._default_from = from_email or f"{settings.SUPPORT_TEAM_NAME} <{default_sender()}>"

    def is_configured(self) -> bool:
        """Check if Resend API key is configured."""
        return bool(self._api_key)

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email via Resend API.

        HOW: Uses httpx for async HTTP requests to Resend API.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        if not self.is_configured():
            return EmailResult(
                success=False,
                error="Resend API key not configured",
                provider=self.name,
            )

        payload = {
            "from": message.from_email or self._default_from,
            "to": [message.to_email],
            "subject": message.subject,
            "html": message.html_content,
        }
        if message.text_content:
            payload["text"] = message.text_content
        if message.reply_to:
            payload["reply_to"] = message.reply_to

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                    timeout=30.0,
                )

                if response.status_code in (200, 201):
                    data = response.json()
                    return EmailResult(
                        success=True,
                        message_id=data.get("id"),
                        provider=self.name,
                    )
                else:
                    return EmailResult(
                        success=False,
                        error=f"Resend API error: {response.status_code} - {response.text}",
                        provider=self.name,
                    )

        except httpx.HTTPError as e:
            logger.error(f"Resend send error: {e}")
            return EmailResult(
                success=False,
                error=str(e),
                provider=self.name,
            )


class SmtpProvider(EmailProvider):
    """
    SMTP email provider implementation.

    WHAT: Sends through any SMTP relay (Gmail by default) with STARTTLS
    and login.

    HOW: smtplib is blocking, so the exchange runs in a worker thread.
    """

    name = "smtp"

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_email: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize SMTP provider.

        Args:
            host: SMTP host (defaults to settings)
            port: SMTP port (defaults to settings)
            username: Login user (defaults to settings)
            password: Login password (defaults to settings)
            from_email: Default sender (defaults to configured sender)
            timeout: Socket timeout in seconds
        """
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self._username = username or settings.SMTP_USER
        self._password = password or settings.SMTP_PASS
        self._default_from = from_email or default_sender()
        self.timeout = timeout

    def is_configured(self) -> bool:
        """Check if SMTP credentials are configured."""
        return bool(self.host and self._username and self._password)

    def _build_mime(self, message: EmailMessage, message_id: str) -> MIMEMultipart:
        sender = message.from_email or self._default_from
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f"{settings.SUPPORT_TEAM_NAME} <{sender}>"
        mime["To"] = message.to_email
        mime["Message-ID"] = message_id
        if message.reply_to:
            mime["Reply-To"] = message.reply_to
        if message.text_content:
            mime.attach(MIMEText(message.text_content, "plain", "utf-8"))
        mime.attach(MIMEText(message.html_content, "html", "utf-8"))
        return mime

    def _send_sync(self, message: EmailMessage, message_id: str) -> None:
        mime = self._build_mime(message, message_id)
        sender = message.from_email or self._default_from
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self._username, self._password)
            server.sendmail(sender, [message.to_email], mime.as_string())

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email via SMTP.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        if not self.is_configured():
            return EmailResult(
                success=False,
                error="SMTP credentials not configured",
                provider=self.name,
            )

        message_id = make_msgid(domain=self.host)
        try:
            await asyncio.to_thread(self._send_sync, message, message_id)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send error: {e}")
            return EmailResult(
                success=False,
                error=str(e),
                provider=self.name,
            )

        return EmailResult(success=True, message_id=message_id, provider=self.name)


class MockEmailProvider(EmailProvider):
    """
    Mock email provider for testing and development.

    WHY: Allows exercising email flows without sending real emails.
    Logs emails instead of sending them.
    """

    name = "mock"

    sent_emails: List[EmailMessage] = []
    """Class-level list to track sent emails for testing."""

    def is_configured(self) -> bool:
        """Mock provider is always configured."""
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Mock send - logs email instead of sending.

        Args:
            message: Email message to "send"

        Returns:
            Always returns success
        """
        logger.info(
            f"[MOCK EMAIL] To: {message.to_email}, "
            f"Subject: {message.subject}, "
            f"Type: {message.email_type.value}"
        )

        # Track for testing
        MockEmailProvider.sent_emails.append(message)

        return EmailResult(
            success=True,
            message_id=f"mock-{datetime.now(timezone.utc).timestamp()}",
            provider=self.name,
        )

    @classmethod
    def clear_sent_emails(cls):
        """Clear sent emails list (for test cleanup)."""
        cls.sent_emails = []


PROVIDERS = {
    "resend": ResendProvider,
    "smtp": SmtpProvider,
    "mock": MockEmailProvider,
}


def select_provider() -> EmailProvider:
    """
    Pick the email provider from configuration.

    WHAT: ``EMAIL_PROVIDER`` wins when set; otherwise Resend if it has an
    API key, then SMTP if it has credentials, then the mock provider.

    Raises:
        EmailServiceError: If ``EMAIL_PROVIDER`` names an unknown provider
    """
    if settings.EMAIL_PROVIDER:
        key = settings.EMAIL_PROVIDER.lower()
        if key not in PROVIDERS:
            raise EmailServiceError(
                message=f"Unknown email provider: {settings.EMAIL_PROVIDER}",
                provider=settings.EMAIL_PROVIDER,
            )
        return PROVIDERS[key]()

    if settings.RESEND_API_KEY:
        return ResendProvider()
    if settings.smtp_configured:
        return SmtpProvider()

    # Use mock provider in development/testing
    logger.warning("No email provider configured, using mock provider")
    return MockEmailProvider()


# ============================================================================
# Email Service
# ============================================================================


class EmailService:
    """
    High-level email service for sending transactional emails.

    WHAT: Sends an ``EmailMessage`` through the configured provider and
    logs the outcome.
    """

    def __init__(self, provider: Optional[EmailProvider] = None):
        """
        Initialize email service.

        Args:
            provider: Email provider to use (auto-detected if not provided)
        """
        self._provider = provider or select_provider()

    @property
    def provider(self) -> EmailProvider:
        return self._provider

    async def send_email(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        logger.info(
            f"Sending {message.email_type.value} email to {message.to_email}",
            extra={
                "email_type": message.email_type.value,
                "to": message.to_email,
            },
        )

        result = await self._provider.send(message)

        if result.success:
            logger.info(
                f"Email sent successfully: {result.message_id}",
                extra={
                    "message_id": result.message_id,
                    "provider": result.provider,
                },
            )
        else:
            logger.error(
                f"Email send failed: {result.error}",
                extra={
                    "email_type": message.email_type.value,
                    "to": message.to_email,
                    "error": result.error,
                },
            )

        return result


# Module-level singleton
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """
    Get or create the global email service instance.

    Returns:
        EmailService instance
    """
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service


def reset_email_service() -> None:
    """Drop the cached service so the next call re-reads configuration."""
    global _email_service
    _email_service = None
