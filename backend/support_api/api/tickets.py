"""
Ticket API endpoints.

WHAT: JSON endpoints for submitting a support ticket and listing a
customer's tickets.

WHY: The support widget submits tickets here and shows customers their
own tickets. Submission saves the ticket and alerts the support mailbox
in one request.

HOW: FastAPI router with:
- Pydantic validation of the submission (missing fields answer 400)
- TicketRepository for storage, NotificationService for email
- No authentication; tickets are looked up by email or ticket number
"""

import logging

from fastapi import APIRouter, Depends, status

from support_api.core.deps import get_notification_service, get_ticket_repository
from support_api.schemas.ticket import (
    TicketListResponse,
    TicketSubmission,
    TicketSubmitResponse,
)
from support_api.services.notification_service import NotificationService
from support_api.services.ticket_repository import TicketRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tickets"])


@router.post(
    "/submit-ticket",
    response_model=TicketSubmitResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit ticket",
    description="Record a new support ticket and email the support desk",
)
async def submit_ticket(
    data: TicketSubmission,
    repository: TicketRepository = Depends(get_ticket_repository),
    notifications: NotificationService = Depends(get_notification_service),
) -> TicketSubmitResponse:
    """
    Submit a new support ticket.

    WHAT: Stores the ticket as Open with no comments, then sends the
    new-ticket alert with a link to the update form.

    Note: The ticket stays stored even when the alert cannot be sent; the
    request then fails with 500.

    Args:
        data: Ticket submission
        repository: Ticket repository
        notifications: Notification service

    Returns:
        Confirmation with the ticket number

    Raises:
        ValidationError (400): If a required field is missing or empty
        EmailDeliveryError (500): If the alert could not be sent
    """
    ticket = await repository.submit(data)
    await notifications.send_ticket_created(ticket)

    return TicketSubmitResponse(
        success=True,
        message="Ticket submitted and email sent",
        ticketNumber=ticket.ticket_number,
    )


@router.get(
    "/tickets/{user_id}",
    response_model=TicketListResponse,
    status_code=status.HTTP_200_OK,
    summary="List tickets for user",
    description="Tickets whose email matches, or whose number contains, the given id",
)
async def list_tickets_for_user(
    user_id: str,
    repository: TicketRepository = Depends(get_ticket_repository),
) -> TicketListResponse:
    """
    List a customer's tickets from the local store.

    Args:
        user_id: Customer email, or part of a ticket number
        repository: Ticket repository

    Returns:
        Matching tickets in stored order, camelCase keys
    """
    tickets = await repository.list_for_user(user_id)
    return TicketListResponse(
        success=True,
        tickets=[t.model_dump(mode="json", by_alias=True) for t in tickets],
    )
