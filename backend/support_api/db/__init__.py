"""Database package"""

from support_api.db.session import get_external_db, get_session_factory, dispose_engine
from support_api.db.ticket_store import (
    TicketStore,
    FileTicketStore,
    MemoryTicketStore,
    ResilientTicketStore,
    build_ticket_store,
    get_ticket_store,
)
from support_api.models.base import Base

__all__ = [
    "Base",
    "get_external_db",
    "get_session_factory",
    "dispose_engine",
    "TicketStore",
    "FileTicketStore",
    "MemoryTicketStore",
    "ResilientTicketStore",
    "build_ticket_store",
    "get_ticket_store",
]
