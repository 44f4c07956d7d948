"""
Email Template Service for rendering Jinja2 email templates.

WHAT: Service for loading and rendering the ticket email templates.

WHY: Ticket fields come straight from customers. Rendering through
Jinja2 with autoescaping keeps their text from injecting markup into
staff mailboxes, and keeps the HTML out of Python code.

HOW: Uses a Jinja2 environment with FileSystemLoader over the package's
templates/email directory. Provides one method per email type returning
``(subject, html, text)``.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional
from urllib.parse import quote
from datetime import datetime, timezone

from jinja2 import Environment, FileSystemLoader, select_autoescape, TemplateNotFound, TemplateError

from support_api.core.config import settings
from support_api.core.exceptions import EmailServiceError
from support_api.schemas.ticket import Ticket


logger = logging.getLogger(__name__)

TEMPLATES_ROOT = Path(__file__).parent.parent / "templates"


def create_environment(template_dir: Path) -> Environment:
    """
    Create Jinja2 environment with proper configuration.

    WHAT: Autoescaping for HTML, trimmed blocks, and a ``path_segment``
    filter that quotes a value for use as one URL path segment.

    Args:
        template_dir: Directory to load templates from

    Returns:
        Configured Jinja2 Environment
    """
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["path_segment"] = lambda value: quote(str(value), safe="")
    return env


class EmailTemplateService:
    """
    Service for rendering email templates.

    Example:
        template_service = EmailTemplateService()
        subject, html, text = template_service.render_ticket_created_email(
            ticket=ticket,
            update_url="http://localhost:3001/update/T-100",
        )
    """

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template service.

        Args:
            template_dir: Path to templates directory (defaults to templates/email)
        """
        if template_dir is None:
            template_dir = TEMPLATES_ROOT / "email"

        self._template_dir = template_dir
        self._env = create_environment(template_dir)

    def _get_base_context(self) -> Dict[str, Any]:
        """
        Get base context variables for all templates.

        Returns:
            Dict with base context variables
        """
        return {
            "year": datetime.now(timezone.utc).year,
            "base_url": settings.base_url,
            "team_name": settings.SUPPORT_TEAM_NAME,
        }

    def render_template(
        self,
        template_name: str,
        context: Dict[str, Any],
    ) -> str:
        """
        Render a template with given context.

        Args:
            template_name: Name of template file (e.g., "ticket_created.html")
            context: Template variables

        Returns:
            Rendered HTML string

        Raises:
            EmailServiceError: If template not found or render fails
        """
        try:
            template = self._env.get_template(template_name)
            full_context = {**self._get_base_context(), **context}
            return template.render(**full_context)
        except TemplateNotFound:
            logger.error(f"Email template not found: {template_name}")
            raise EmailServiceError(
                message=f"Email template not found: {template_name}",
                template=template_name,
            )
        except TemplateError as e:
            logger.error(f"Error rendering template {template_name}: {e}")
            raise EmailServiceError(
                message="Failed to render email template",
                template=template_name,
                error=str(e),
            )

    def render_ticket_created_email(
        self,
        ticket: Ticket,
        update_url: str,
    ) -> tuple[str, str, str]:
        """
        Render the new-ticket alert for the support mailbox.

        Args:
            ticket: Newly submitted ticket
            update_url: Deep link to the update form

        Returns:
            Tuple of (subject, html_content, text_content)
        """
        context = {
            "ticket": ticket,
            "update_url": update_url,
        }

        html = self.render_template("ticket_created.html", context)
        text = self._generate_text_version(
            f"New support ticket received.\n\n"
            f"Ticket Number: {ticket.ticket_number}\n"
            f"User: {ticket.user_name} ({ticket.user_email})\n"
            f"Phone: {ticket.user_phone}\n"
            f"Company: {ticket.company_name}\n"
            f"AnyDesk ID: {ticket.any_desk_id}\n"
            f"Priority: {ticket.priority}\n"
            + (f"Contact Preference: {ticket.contact_preference}\n" if ticket.contact_preference else "")
            + (f"Scheduled Time: {ticket.scheduled_time}\n" if ticket.scheduled_time else "")
            + f"\nIssue:\n{ticket.issue}\n\n"
            f"Update ticket status: {update_url}"
        )

        subject = f"New Support Ticket: {ticket.ticket_number} - {ticket.priority} Priority"
        return subject, html, text

    def render_ticket_updated_email(
        self,
        ticket: Ticket,
        new_status: str,
        note: Optional[str] = None,
    ) -> tuple[str, str, str]:
        """
        Render the status-change notice for the customer.

        Args:
            ticket: Updated ticket
            new_status: New status label
            note: Optional note from staff

        Returns:
            Tuple of (subject, html_content, text_content)
        """
        context = {
            "ticket": ticket,
            "new_status": new_status,
            "note": note,
        }

        html = self.render_template("ticket_updated.html", context)
        text = self._generate_text_version(
            f"Hi {ticket.user_name},\n\n"
            f"Your support ticket has been updated.\n\n"
            f"Ticket Number: {ticket.ticket_number}\n"
            f"New Status: {new_status}\n"
            + (f"Notes: {note}\n" if note else "")
            + "\nThank you for your patience."
        )

        subject = f"Ticket Update: {ticket.ticket_number} - Status: {new_status}"
        return subject, html, text

    @staticmethod
    def _generate_text_version(content: str) -> str:
        """
        Generate plain text email version.

        Args:
            content: Text content

        Returns:
            Formatted plain text email
        """
        footer = f"\n\n---\n{settings.SUPPORT_TEAM_NAME}"
        return content.strip() + footer


# Module-level singleton
_template_service: Optional[EmailTemplateService] = None


def get_email_template_service() -> EmailTemplateService:
    """
    Get or create the global template service instance.

    Returns:
        EmailTemplateService instance
    """
    global _template_service

    if _template_service is None:
        _template_service = EmailTemplateService()

    return _template_service
