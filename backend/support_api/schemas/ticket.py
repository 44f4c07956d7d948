"""
Pydantic schemas for support tickets.

WHAT: The ticket record as stored in the local JSON document, the
submission request body, and the JSON response envelopes.

WHY: The local document and the public API share one camelCase shape
(``ticketNumber``, ``userEmail``...). Declaring it once here keeps the
stored document, the list endpoint and the email templates in step.

HOW: Pydantic v2 models with a camelCase alias generator. Models accept
either snake_case or camelCase on input and are dumped ``by_alias``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


NOT_AVAILABLE = "N/A"
DEFAULT_PRIORITY = "Medium"


def utcnow() -> datetime:
    """Timezone-aware current time; stored timestamps are always UTC."""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================


class TicketStatus(str, Enum):
    """
    Local ticket status labels.

    WHAT: The four labels shown on the update form and stored in the
    local document.

    WHY: Any label may follow any other; transitions are not enforced.
    """

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class TicketSource(str, Enum):
    """Which store a ticket lookup was answered from."""

    EXTERNAL = "external"
    LOCAL = "local"
    NOT_FOUND = "not_found"


# ============================================================================
# Stored Ticket
# ============================================================================


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TicketComment(CamelModel):
    """A note appended to a ticket by a status update."""

    text: str
    author: str
    created_at: datetime = Field(default_factory=utcnow)


class Ticket(CamelModel):
    """
    Support ticket record.

    WHAT: One entry of the local ``{"tickets": [...]}`` document, and the
    normalized view of an external ticket.

    WHY: ``ticket_number`` is supplied by the client and used as identity.
    Duplicates are accepted as-is. Keys this model does not know (for
    example a legacy ``notes`` key) are kept so a rewrite does not drop them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: Optional[str] = None
    ticket_number: str
    user_name: str
    user_email: str
    user_phone: str = NOT_AVAILABLE
    any_desk_id: str = NOT_AVAILABLE
    company_name: str = NOT_AVAILABLE
    issue: str
    priority: str = DEFAULT_PRIORITY
    contact_preference: Optional[str] = None
    scheduled_time: Optional[str] = None
    status: TicketStatus = TicketStatus.OPEN
    comments: List[TicketComment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        """
        Coerce unknown labels to Open.

        WHY: Documents edited by hand or written by older versions may
        hold labels outside the four; the status invariant must still hold.
        """
        from support_api.services.status_vocabulary import normalize_local

        return normalize_local(v)

    @model_validator(mode="after")
    def default_id(self) -> "Ticket":
        """The stored ``id`` mirrors the ticket number."""
        if self.id is None:
            self.id = self.ticket_number
        return self


class TicketDocument(CamelModel):
    """The whole local store: one JSON document holding every ticket."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    tickets: List[Ticket] = Field(default_factory=list)


# ============================================================================
# Requests
# ============================================================================


class TicketSubmission(CamelModel):
    """
    Ticket submission request.

    WHAT: Body of ``POST /api/submit-ticket``.

    WHY: ``ticketNumber``, ``userName``, ``userEmail`` and ``issue`` are
    required and must be non-empty. Optional fields fall back to the
    documented defaults ("N/A", "Medium") when absent, null or empty.
    """

    ticket_number: str = Field(..., min_length=1, description="Client-generated ticket number")
    user_name: str = Field(..., min_length=1, description="Submitter name")
    user_email: str = Field(..., min_length=1, description="Submitter email, used for updates")
    issue: str = Field(..., min_length=1, description="Problem description")
    user_phone: Optional[str] = Field(None, description="Contact phone number")
    company_name: Optional[str] = Field(None, description="Submitter's company")
    any_desk_id: Optional[str] = Field(None, description="AnyDesk ID for remote sessions")
    priority: Optional[str] = Field(None, description="Priority label, defaults to Medium")
    contact_preference: Optional[str] = Field(None, description="Preferred contact channel")
    scheduled_time: Optional[str] = Field(None, description="Requested callback time")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "ticketNumber": "T-100",
                "userName": "Jane",
                "userEmail": "jane@x.com",
                "issue": "printer down",
                "priority": "High",
            }
        },
    )

    def to_ticket(self, now: Optional[datetime] = None) -> Ticket:
        """
        Build a new Open ticket from this submission.

        ``created_at`` and ``updated_at`` share one timestamp.
        """
        now = now or utcnow()
        return Ticket(
            ticket_number=self.ticket_number,
            user_name=self.user_name,
            user_email=self.user_email,
            user_phone=self.user_phone or NOT_AVAILABLE,
            any_desk_id=self.any_desk_id or NOT_AVAILABLE,
            company_name=self.company_name or NOT_AVAILABLE,
            issue=self.issue,
            priority=self.priority or DEFAULT_PRIORITY,
            contact_preference=self.contact_preference or None,
            scheduled_time=self.scheduled_time or None,
            status=TicketStatus.OPEN,
            comments=[],
            created_at=now,
            updated_at=now,
        )


# ============================================================================
# Responses
# ============================================================================


class TicketSubmitResponse(BaseModel):
    """Response of ``POST /api/submit-ticket``."""

    success: bool = True
    message: str
    ticketNumber: str


class TicketListResponse(BaseModel):
    """Response of ``GET /api/tickets/{user_id}``."""

    success: bool = True
    tickets: List[dict]
