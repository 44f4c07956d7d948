"""
External Ticket Data Access Object.

WHAT: DAO for reading and updating tickets in the hosted database.

WHY: Encapsulates the joins the ticket view needs (submitter profile,
company, comments in creation order) and the two writes a status update
performs (status column, optional comment row).

HOW: Uses SQLAlchemy 2.0 async with eager loading, so the loaded ticket
can be read after the session commits.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from support_api.dao.base import BaseDAO
from support_api.models.ticket import (
    ExternalTicket,
    ExternalTicketComment,
    ExternalTicketStatus,
)


class ExternalTicketDAO(BaseDAO[ExternalTicket]):
    """
    Data Access Object for external tickets.

    WHAT: Lookup by customer-facing ticket number or surrogate id, and
    status changes.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize ExternalTicketDAO with database session.

        Args:
            session: AsyncSession for database operations
        """
        super().__init__(ExternalTicket, session)

    @staticmethod
    def _relations():
        return (
            selectinload(ExternalTicket.submitter),
            selectinload(ExternalTicket.company),
            selectinload(ExternalTicket.comments),
        )

    async def get_by_reference_with_relations(
        self,
        reference: str,
    ) -> Optional[ExternalTicket]:
        """
        Get a ticket by ticket number or surrogate id with relations loaded.

        WHY: Update links carry the ticket number, but rows created by
        other clients may only be known by their id. The ticket number is
        tried first; the oldest row wins when numbers repeat.

        Args:
            reference: Ticket number or surrogate id

        Returns:
            Ticket with submitter, company and comments, or None
        """
        query = (
            select(ExternalTicket)
            .options(*self._relations())
            .where(ExternalTicket.ticket_number == reference)
            .order_by(ExternalTicket.created_at)
            .limit(1)
        )

        result = await self.session.execute(query)
        ticket = result.scalar_one_or_none()
        if ticket is not None:
            return ticket
        return await self.get_by_id(reference, options=self._relations())

    async def change_status(
        self,
        ticket: ExternalTicket,
        status: ExternalTicketStatus,
    ) -> ExternalTicket:
        """
        Set a ticket's status.

        WHAT: Writes the translated status and bumps ``updated_at``.

        Note: No transition rules are applied; any status may follow any
        other.

        Args:
            ticket: Loaded ticket instance
            status: New external status

        Returns:
            The updated ticket
        """
        ticket.status = status.value
        ticket.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return ticket


class ExternalTicketCommentDAO(BaseDAO[ExternalTicketComment]):
    """Data Access Object for external ticket comments."""

    def __init__(self, session: AsyncSession):
        """
        Initialize ExternalTicketCommentDAO with database session.

        Args:
            session: AsyncSession for database operations
        """
        super().__init__(ExternalTicketComment, session)

    async def add(
        self,
        ticket: ExternalTicket,
        text: str,
        author_name: str,
        created_at: Optional[datetime] = None,
    ) -> ExternalTicketComment:
        """
        Insert one comment row for a ticket.

        Args:
            ticket: Ticket being commented on
            text: Comment text
            author_name: Display name of the author
            created_at: Comment timestamp (defaults to now)

        Returns:
            Created comment
        """
        comment = ExternalTicketComment(
            text=text,
            author_name=author_name,
            created_at=created_at or datetime.now(timezone.utc),
        )
        # Appending through the relationship keeps the loaded collection current
        ticket.comments.append(comment)
        await self.session.flush()
        return comment
