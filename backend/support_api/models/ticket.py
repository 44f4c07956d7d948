"""
Ticket models for the external (hosted) ticket database.

WHAT: SQLAlchemy models for tickets and their comments as stored by the
hosted Postgres backend.

WHY: The hosted backend keeps a richer schema than the local JSON
document: a ticket references a submitter profile and a company, and
comments live in their own table. It also uses its own status labels
(submitted, assigned, in_progress, completed, closed).

HOW: Uses SQLAlchemy 2.0 typed mappings. Status is a plain string column
because rows may be written by other clients of the hosted database;
translation to local labels tolerates unknown values.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import (
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from support_api.models.base import Base

if TYPE_CHECKING:
    from support_api.models.profile import Profile, Company


def new_uuid() -> str:
    """Surrogate keys are UUID strings, as issued by the hosted database."""
    return str(uuid.uuid4())


# ============================================================================
# Enums
# ============================================================================


class ExternalTicketStatus(str, Enum):
    """
    Ticket status values used by the hosted database.

    WHAT: Lifecycle labels of the external schema.

    Note: ``assigned`` has no local counterpart of its own and reads back
    as "In Progress".
    """

    SUBMITTED = "submitted"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"


# ============================================================================
# Ticket Model
# ============================================================================


class ExternalTicket(Base):
    """
    Support ticket row in the hosted database.

    WHAT: Keyed by a surrogate UUID; ``ticket_number`` is the number the
    customer sees and the one used in update links.
    """

    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    ticket_number: Mapped[str] = mapped_column(String(100), nullable=False)

    submitter_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("profiles.id"), nullable=True
    )
    company_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=True
    )

    # Ticket details
    issue: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_preference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    scheduled_time: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    anydesk_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(32),
        default=ExternalTicketStatus.SUBMITTED.value,
        nullable=False,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # Relationships
    submitter: Mapped[Optional["Profile"]] = relationship("Profile")
    company: Mapped[Optional["Company"]] = relationship("Company")
    comments: Mapped[List["ExternalTicketComment"]] = relationship(
        "ExternalTicketComment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="ExternalTicketComment.created_at",
    )

    __table_args__ = (
        Index("ix_tickets_ticket_number", "ticket_number"),
        Index("ix_tickets_submitter_id", "submitter_id"),
    )

    def __repr__(self) -> str:
        return f"<ExternalTicket(id={self.id}, ticket_number='{self.ticket_number}', status={self.status})>"


class ExternalTicketComment(Base):
    """
    Comment on an external ticket.

    WHAT: Ordered by ``created_at`` ascending when loaded with its ticket.
    """

    __tablename__ = "ticket_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    ticket_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    ticket: Mapped["ExternalTicket"] = relationship(
        "ExternalTicket", back_populates="comments"
    )

    __table_args__ = (
        Index("ix_ticket_comments_ticket_id", "ticket_id"),
    )

    def __repr__(self) -> str:
        return f"<ExternalTicketComment(id={self.id}, ticket_id={self.ticket_id})>"
