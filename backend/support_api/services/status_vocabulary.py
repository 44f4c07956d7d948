"""
Translation between local and external ticket status labels.

WHAT: Pure functions mapping the local labels (Open, In Progress,
Resolved, Closed) to the hosted database's labels (submitted, assigned,
in_progress, completed, closed) and back.

WHY: The two stores describe the same lifecycle with different words.
Every function is total: an unrecognized label maps to the vocabulary's
default ("submitted" outward, "Open" inward) instead of raising.
"""

from typing import Optional, Union

from support_api.models.ticket import ExternalTicketStatus
from support_api.schemas.ticket import TicketStatus


LOCAL_TO_EXTERNAL = {
    TicketStatus.OPEN: ExternalTicketStatus.SUBMITTED,
    TicketStatus.IN_PROGRESS: ExternalTicketStatus.IN_PROGRESS,
    TicketStatus.RESOLVED: ExternalTicketStatus.COMPLETED,
    TicketStatus.CLOSED: ExternalTicketStatus.CLOSED,
}

EXTERNAL_TO_LOCAL = {
    ExternalTicketStatus.SUBMITTED: TicketStatus.OPEN,
    ExternalTicketStatus.ASSIGNED: TicketStatus.IN_PROGRESS,
    ExternalTicketStatus.IN_PROGRESS: TicketStatus.IN_PROGRESS,
    ExternalTicketStatus.COMPLETED: TicketStatus.RESOLVED,
    ExternalTicketStatus.CLOSED: TicketStatus.CLOSED,
}

DEFAULT_LOCAL_STATUS = TicketStatus.OPEN
DEFAULT_EXTERNAL_STATUS = ExternalTicketStatus.SUBMITTED


def parse_local(status: Optional[Union[str, TicketStatus]]) -> Optional[TicketStatus]:
    """
    Parse a local label, returning None when it is not one of the four.

    Used where an unknown label must be rejected rather than defaulted
    (the update form).
    """
    if isinstance(status, TicketStatus):
        return status
    try:
        return TicketStatus(status)
    except ValueError:
        return None


def normalize_local(status: Optional[Union[str, TicketStatus]]) -> TicketStatus:
    """Coerce any value to a local label, defaulting to Open."""
    return parse_local(status) or DEFAULT_LOCAL_STATUS


def to_external(status: Optional[Union[str, TicketStatus]]) -> ExternalTicketStatus:
    """
    Translate a local label to the hosted database's vocabulary.

    Args:
        status: Local label (enum member or its string value)

    Returns:
        External label; "submitted" for anything unrecognized
    """
    local = parse_local(status)
    if local is None:
        return DEFAULT_EXTERNAL_STATUS
    return LOCAL_TO_EXTERNAL[local]


def from_external(status: Optional[Union[str, ExternalTicketStatus]]) -> TicketStatus:
    """
    Translate a hosted database label to the local vocabulary.

    Args:
        status: External label (enum member or its string value)

    Returns:
        Local label; "Open" for anything unrecognized
    """
    try:
        external = ExternalTicketStatus(status)
    except ValueError:
        return DEFAULT_LOCAL_STATUS
    return EXTERNAL_TO_LOCAL[external]
