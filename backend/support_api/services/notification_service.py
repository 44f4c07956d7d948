"""
Notification Service for ticket events.

WHAT: Sends the two ticket emails: the new-ticket alert to the support
mailbox and the status-change notice to the customer.

WHY: Both HTTP surfaces (JSON submission and the HTML update form) need
the same emails. Keeping composition and delivery policy here means the
handlers only call one method per event.

HOW: Event methods render the ticket through EmailTemplateService, send
through EmailService, and turn an unsuccessful provider result into
``EmailDeliveryError``. The ticket change has already been saved when
these run, so a failure here fails the request without undoing it.
"""

import logging
from typing import Optional
from urllib.parse import quote

from support_api.core.config import settings
from support_api.core.exceptions import EmailDeliveryError
from support_api.schemas.ticket import NOT_AVAILABLE, Ticket, TicketStatus
from support_api.services.email import (
    EmailMessage,
    EmailResult,
    EmailService,
    EmailType,
    get_email_service,
)
from support_api.services.email_template_service import (
    EmailTemplateService,
    get_email_template_service,
)

logger = logging.getLogger(__name__)


def has_address(email: Optional[str]) -> bool:
    return bool(email) and email != NOT_AVAILABLE and "@" in email


class NotificationService:
    """
    Sends ticket emails.

    Attributes:
        email_service: Delivery service (provider chosen from settings)
        template_service: Renders subjects and bodies
        base_url: Base URL for the update-form link
        support_email: Mailbox that receives new-ticket alerts
    """

    def __init__(
        self,
        email_service: Optional[EmailService] = None,
        template_service: Optional[EmailTemplateService] = None,
        base_url: Optional[str] = None,
        support_email: Optional[str] = None,
    ):
        """
        Initialize NotificationService.

        Args:
            email_service: EmailService instance (defaults to the shared one)
            template_service: Template renderer (defaults to the shared one)
            base_url: Base URL for action links (defaults to settings)
            support_email: Staff mailbox (defaults to settings)
        """
        self.email_service = email_service or get_email_service()
        self.template_service = template_service or get_email_template_service()
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.support_email = support_email or settings.SUPPORT_EMAIL

    def build_update_url(self, ticket_number: str) -> str:
        """
        Build the link staff follow to update a ticket.

        Args:
            ticket_number: Ticket number

        Returns:
            Full URL to the update form
        """
        return f"{self.base_url}/update/{quote(ticket_number, safe='')}"

    async def _deliver(self, message: EmailMessage) -> EmailResult:
        result = await self.email_service.send_email(message)
        if not result.success:
            raise EmailDeliveryError(
                message=f"Failed to send email: {result.error}",
                provider=result.provider,
                email_type=message.email_type.value,
            )
        return result

    async def send_ticket_created(self, ticket: Ticket) -> EmailResult:
        """
        Alert the support mailbox about a new ticket.

        Args:
            ticket: Newly stored ticket

        Returns:
            Provider result

        Raises:
            EmailDeliveryError: If the provider did not accept the message
        """
        subject, html, text = self.template_service.render_ticket_created_email(
            ticket=ticket,
            update_url=self.build_update_url(ticket.ticket_number),
        )
        return await self._deliver(
            EmailMessage(
                to_email=self.support_email,
                subject=subject,
                html_content=html,
                text_content=text,
                reply_to=ticket.user_email,
                email_type=EmailType.TICKET_CREATED,
                metadata={"ticket_number": ticket.ticket_number},
            )
        )

    async def send_ticket_updated(
        self,
        ticket: Ticket,
        new_status: TicketStatus,
        note: Optional[str] = None,
    ) -> Optional[EmailResult]:
        """
        Tell the customer their ticket changed status.

        Note: Tickets from the hosted database may have no submitter email
        (stored as "N/A"); those are skipped with a warning.

        Args:
            ticket: Updated ticket
            new_status: Status just applied
            note: Staff note included in the email, if any

        Returns:
            Provider result, or None when the ticket has no customer address

        Raises:
            EmailDeliveryError: If the provider did not accept the message
        """
        if not has_address(ticket.user_email):
            logger.warning(
                f"Ticket {ticket.ticket_number} has no customer email, update notice not sent",
                extra={"ticket_number": ticket.ticket_number},
            )
            return None

        subject, html, text = self.template_service.render_ticket_updated_email(
            ticket=ticket,
            new_status=new_status.value,
            note=note,
        )
        return await self._deliver(
            EmailMessage(
                to_email=ticket.user_email,
                subject=subject,
                html_content=html,
                text_content=text,
                email_type=EmailType.TICKET_UPDATED,
                metadata={
                    "ticket_number": ticket.ticket_number,
                    "status": new_status.value,
                },
            )
        )
