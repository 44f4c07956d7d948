"""
Ticket update pages.

WHAT: The HTML form staff open from the new-ticket email, and the POST
handler that applies the status change.

WHY: Staff update tickets from their mail client without logging in to
anything, so the form is server-rendered and posts back a plain form.

HOW: Errors are rendered as HTML pages rather than the JSON error shape:
- unknown ticket: "Ticket Not Found" page with status 200
- status outside the four labels: error page with status 400
- delivery or storage failure: error page with the failure's status
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse

from support_api.core.deps import get_notification_service, get_pages, get_ticket_repository
from support_api.core.exceptions import AppException, InvalidStatusError
from support_api.services.notification_service import NotificationService
from support_api.services.page_renderer import PageRenderer
from support_api.services.status_vocabulary import parse_local
from support_api.services.ticket_repository import TicketRepository, clean_note

logger = logging.getLogger(__name__)

router = APIRouter(tags=["updates"])


@router.get("/update/{ticket_id:path}", response_class=HTMLResponse)
async def render_update_form(
    ticket_id: str,
    repository: TicketRepository = Depends(get_ticket_repository),
    pages: PageRenderer = Depends(get_pages),
) -> HTMLResponse:
    """
    Show the update form for a ticket.

    Args:
        ticket_id: Ticket number (or external id)
        repository: Ticket repository
        pages: Page renderer

    Returns:
        Update form with the current status selected, or the not-found page
    """
    lookup = await repository.find_by_id(ticket_id)
    if not lookup.found:
        return pages.not_found(ticket_id)
    return pages.update_form(ticket_id, lookup.ticket)


@router.post("/update/{ticket_id:path}", response_class=HTMLResponse)
async def submit_update(
    ticket_id: str,
    status: str = Form(...),
    notes: Optional[str] = Form(None),
    repository: TicketRepository = Depends(get_ticket_repository),
    notifications: NotificationService = Depends(get_notification_service),
    pages: PageRenderer = Depends(get_pages),
) -> HTMLResponse:
    """
    Apply a status change and email the customer.

    WHAT: Sets the status, appends the note as a comment when given, then
    sends the update email to the ticket's customer.

    Args:
        ticket_id: Ticket number (or external id)
        status: New status label
        notes: Optional staff note
        repository: Ticket repository
        notifications: Notification service
        pages: Page renderer

    Returns:
        Success page naming the new status and the customer's email
    """
    new_status = parse_local(status)
    if new_status is None:
        exc = InvalidStatusError(message=f"Invalid status: {status}", status=status)
        logger.info(f"Rejected update for {ticket_id}: {exc.message}")
        return pages.error(exc.message, status_code=exc.status_code, heading="Invalid Status")

    note = clean_note(notes)
    try:
        lookup = await repository.update_status(ticket_id, new_status, note)
        if not lookup.found:
            return pages.not_found(ticket_id)

        await notifications.send_ticket_updated(lookup.ticket, new_status, note)
    except AppException as e:
        logger.error(
            f"Update of ticket {ticket_id} failed: {e.message}",
            extra={"ticket_id": ticket_id, "status_code": e.status_code},
        )
        return pages.error(
            f"Failed to update ticket: {e.message}",
            status_code=e.status_code,
        )

    return pages.update_success(lookup.ticket)
