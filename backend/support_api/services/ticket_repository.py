"""
Ticket repository.

WHAT: Single entry point for ticket reads and writes across the local
JSON store and the optional hosted database.

WHY: Staff open update links for tickets that may live in either store.
The hosted database is preferred when it holds the ticket; otherwise the
local document answers. Callers get a tagged result saying which store
answered, instead of guessing.

HOW:
- ``find_by_id`` asks the hosted database first (by ticket number or
  surrogate id), then the local store by exact ticket number.
- ``update_status`` writes the translated status (and a comment row) to
  the hosted database when the ticket came from there, and always upserts
  the local copy.
- The two sources are never merged: an external ticket is used wholesale.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from support_api.core.config import settings
from support_api.core.exceptions import DatabaseError
from support_api.dao.local_ticket import LocalTicketDAO
from support_api.dao.ticket import ExternalTicketDAO, ExternalTicketCommentDAO
from support_api.models.ticket import ExternalTicket
from support_api.schemas.ticket import (
    NOT_AVAILABLE,
    DEFAULT_PRIORITY,
    Ticket,
    TicketComment,
    TicketSource,
    TicketStatus,
    TicketSubmission,
    utcnow,
)
from support_api.services.status_vocabulary import from_external, to_external

logger = logging.getLogger(__name__)

# Errors that mean "the hosted database could not answer". Connection
# failures from the driver reach us unwrapped by SQLAlchemy.
EXTERNAL_DB_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def clean_note(note: Optional[str]) -> Optional[str]:
    """Return the note, or None when it is missing or only whitespace."""
    return note if note and note.strip() else None


@dataclass
class TicketLookup:
    """
    Result of resolving a ticket id.

    WHAT: ``source`` tells which store answered; ``ticket`` is the
    normalized view, or None when ``source`` is NOT_FOUND.
    """

    source: TicketSource
    ticket: Optional[Ticket] = None
    external: Optional[ExternalTicket] = None

    @property
    def found(self) -> bool:
        return self.source != TicketSource.NOT_FOUND

    @classmethod
    def not_found(cls) -> "TicketLookup":
        return cls(source=TicketSource.NOT_FOUND)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps from the database as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def external_to_ticket(row: ExternalTicket) -> Ticket:
    """
    Normalize a hosted-database ticket into the local ticket shape.

    WHAT: Flattens submitter profile and company into the ticket, maps
    the status label, and copies comments in creation order.

    Args:
        row: External ticket with submitter, company and comments loaded

    Returns:
        Ticket view with the local field layout
    """
    submitter = row.submitter
    company = row.company
    created_at = _as_utc(row.created_at) or utcnow()

    return Ticket(
        id=row.ticket_number,
        ticket_number=row.ticket_number,
        user_name=(submitter.full_name if submitter and submitter.full_name else NOT_AVAILABLE),
        user_email=(submitter.email if submitter and submitter.email else NOT_AVAILABLE),
        user_phone=(submitter.phone if submitter and submitter.phone else NOT_AVAILABLE),
        any_desk_id=row.anydesk_id or NOT_AVAILABLE,
        company_name=(company.name if company and company.name else NOT_AVAILABLE),
        issue=row.issue,
        priority=row.priority or DEFAULT_PRIORITY,
        contact_preference=row.contact_preference,
        scheduled_time=row.scheduled_time,
        status=from_external(row.status),
        comments=[
            TicketComment(
                text=c.text,
                author=c.author_name or NOT_AVAILABLE,
                created_at=_as_utc(c.created_at) or created_at,
            )
            for c in row.comments
        ],
        created_at=created_at,
        updated_at=_as_utc(row.updated_at) or created_at,
    )


class TicketRepository:
    """
    Two-tier ticket repository.

    Attributes:
        local: DAO over the local ticket document
        external_session: Session for the hosted database, or None when it
            is not configured
        comment_author: Author name recorded on comments added by updates
    """

    def __init__(
        self,
        local: LocalTicketDAO,
        external_session: Optional[AsyncSession] = None,
        comment_author: Optional[str] = None,
    ):
        self.local = local
        self.external_session = external_session
        self.comment_author = comment_author or settings.SUPPORT_TEAM_NAME

    # =========================================================================
    # Local-only operations
    # =========================================================================

    async def submit(self, submission: TicketSubmission) -> Ticket:
        """
        Record a new ticket in the local store.

        Args:
            submission: Validated submission

        Returns:
            Stored ticket (status Open, no comments, created_at == updated_at)
        """
        ticket = await self.local.add(submission.to_ticket())
        logger.info(
            f"Ticket {ticket.ticket_number} submitted",
            extra={"ticket_number": ticket.ticket_number, "priority": ticket.priority},
        )
        return ticket

    async def list_for_user(self, user_id: str) -> List[Ticket]:
        """List local tickets by email or ticket number fragment."""
        return await self.local.list_for_user(user_id)

    # =========================================================================
    # Two-tier lookup
    # =========================================================================

    async def _find_external(self, ticket_id: str) -> Optional[ExternalTicket]:
        if self.external_session is None:
            return None
        try:
            return await ExternalTicketDAO(self.external_session).get_by_reference_with_relations(
                ticket_id
            )
        except EXTERNAL_DB_ERRORS as e:
            logger.warning(
                f"External ticket lookup failed for {ticket_id}, using local store: {e!r}",
                extra={"ticket_id": ticket_id},
            )
            await self._rollback_quietly()
            return None

    async def _rollback_quietly(self) -> None:
        # A session that never connected can fail again on rollback
        try:
            await self.external_session.rollback()
        except EXTERNAL_DB_ERRORS as e:
            logger.warning(f"External session rollback failed: {e!r}")

    async def find_by_id(self, ticket_id: str) -> TicketLookup:
        """
        Resolve a ticket from the hosted database, then the local store.

        Args:
            ticket_id: Ticket number (or external surrogate id)

        Returns:
            TicketLookup tagged EXTERNAL, LOCAL or NOT_FOUND
        """
        row = await self._find_external(ticket_id)
        if row is not None:
            return TicketLookup(
                source=TicketSource.EXTERNAL,
                ticket=external_to_ticket(row),
                external=row,
            )

        ticket = await self.local.get_by_number(ticket_id)
        if ticket is not None:
            return TicketLookup(source=TicketSource.LOCAL, ticket=ticket)

        return TicketLookup.not_found()

    async def _update_external(
        self,
        row: ExternalTicket,
        new_status: TicketStatus,
        comment: Optional[TicketComment],
    ) -> None:
        try:
            await ExternalTicketDAO(self.external_session).change_status(
                row, to_external(new_status)
            )
            if comment:
                await ExternalTicketCommentDAO(self.external_session).add(
                    row,
                    text=comment.text,
                    author_name=comment.author,
                    created_at=comment.created_at,
                )
            # Commit now so a later email failure cannot roll the update back
            await self.external_session.commit()
        except EXTERNAL_DB_ERRORS as e:
            await self._rollback_quietly()
            raise DatabaseError(
                message=f"Failed to update external ticket {row.ticket_number}: {e}",
                ticket_number=row.ticket_number,
            ) from e

    async def update_status(
        self,
        ticket_id: str,
        new_status: TicketStatus,
        note: Optional[str] = None,
    ) -> TicketLookup:
        """
        Change a ticket's status and optionally append a note.

        WHAT: Updates the hosted database when the ticket came from there
        (translated status, one comment row per note), then upserts the
        local copy with the same change.

        Note: Any status may be set from any other; no transition rules
        apply.

        Args:
            ticket_id: Ticket number (or external surrogate id)
            new_status: Local status label
            note: Optional note; blank notes are ignored

        Returns:
            TicketLookup with the updated ticket, or NOT_FOUND
        """
        lookup = await self.find_by_id(ticket_id)
        if not lookup.found:
            return lookup

        now = utcnow()
        note = clean_note(note)
        comment = (
            TicketComment(text=note, author=self.comment_author, created_at=now)
            if note
            else None
        )

        if lookup.source == TicketSource.EXTERNAL:
            await self._update_external(lookup.external, new_status, comment)

        def apply(ticket: Ticket) -> None:
            ticket.status = new_status
            ticket.updated_at = now
            if comment:
                ticket.comments.append(comment.model_copy())

        ticket_number = lookup.ticket.ticket_number
        if lookup.source == TicketSource.EXTERNAL:
            # The external view is authoritative; the local copy mirrors it.
            view = lookup.ticket.model_copy(deep=True)
            apply(view)
            await self.local.update(
                ticket_number,
                lambda t: _mirror(t, view),
                default=view,
            )
        else:
            view = await self.local.update(ticket_number, apply, default=lookup.ticket)

        logger.info(
            f"Ticket {ticket_number} set to {new_status.value}",
            extra={
                "ticket_number": ticket_number,
                "source": lookup.source.value,
                "has_note": comment is not None,
            },
        )
        return TicketLookup(source=lookup.source, ticket=view, external=lookup.external)


def _mirror(target: Ticket, source: Ticket) -> None:
    """Copy an external ticket view onto its local copy."""
    for field_name in Ticket.model_fields:
        if field_name == "id":
            continue
        setattr(target, field_name, getattr(source, field_name))
    target.comments = [c.model_copy() for c in source.comments]
