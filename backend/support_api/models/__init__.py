"""
Database models package.

WHY: Importing every model here registers all tables on ``Base.metadata``
before anything creates the schema.
"""

from support_api.models.base import Base
from support_api.models.ticket import (
    ExternalTicket,
    ExternalTicketComment,
    ExternalTicketStatus,
)
from support_api.models.profile import Profile, Company

__all__ = [
    "Base",
    "ExternalTicket",
    "ExternalTicketComment",
    "ExternalTicketStatus",
    "Profile",
    "Company",
]
