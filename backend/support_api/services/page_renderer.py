"""
Server-rendered pages for the ticket update flow.

WHAT: Renders the update form, the success page, the not-found page and
the error page as ``HTMLResponse`` objects.

WHY: Staff reach the update form from a link in an email, so these views
are plain HTML rather than JSON. Ticket text is customer input and is
autoescaped like the email templates.

HOW: Shares ``create_environment`` with the email templates, pointed at
templates/pages.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi.responses import HTMLResponse

from support_api.core.config import settings
from support_api.schemas.ticket import Ticket, TicketStatus
from support_api.services.email_template_service import TEMPLATES_ROOT, create_environment


class PageRenderer:
    """Renders the HTML pages of the update flow."""

    def __init__(self, template_dir: Optional[Path] = None):
        self._env = create_environment(template_dir or TEMPLATES_ROOT / "pages")

    def render(self, template_name: str, status_code: int = 200, **context: Any) -> HTMLResponse:
        """
        Render a page template into a response.

        Args:
            template_name: Template file under templates/pages
            status_code: HTTP status of the response
            **context: Template variables

        Returns:
            HTMLResponse with the rendered page
        """
        full_context: Dict[str, Any] = {"team_name": settings.SUPPORT_TEAM_NAME, **context}
        html = self._env.get_template(template_name).render(**full_context)
        return HTMLResponse(content=html, status_code=status_code)

    def update_form(self, ticket_id: str, ticket: Ticket) -> HTMLResponse:
        """Form pre-filled with the ticket's current status and comments."""
        return self.render(
            "update_form.html",
            ticket_id=ticket_id,
            ticket=ticket,
            statuses=list(TicketStatus),
        )

    def update_success(self, ticket: Ticket) -> HTMLResponse:
        return self.render("update_success.html", ticket=ticket)

    def not_found(self, ticket_id: str) -> HTMLResponse:
        # Rendered with 200; the page itself says the ticket is missing
        return self.render("not_found.html", ticket_id=ticket_id)

    def error(self, message: str, status_code: int = 500, heading: str = "Error") -> HTMLResponse:
        return self.render(
            "error.html",
            status_code=status_code,
            heading=heading,
            message=message,
        )


_page_renderer: Optional[PageRenderer] = None


def get_page_renderer() -> PageRenderer:
    """Get or create the shared page renderer."""
    global _page_renderer

    if _page_renderer is None:
        _page_renderer = PageRenderer()

    return _page_renderer
