"""
Data Access Object (DAO) package.

WHY: DAOs separate storage operations from business logic. The local
DAO works over the JSON ticket document; the others over the optional
hosted database.
"""

from support_api.dao.base import BaseDAO
from support_api.dao.local_ticket import LocalTicketDAO
from support_api.dao.ticket import ExternalTicketDAO, ExternalTicketCommentDAO

__all__ = [
    "BaseDAO",
    "LocalTicketDAO",
    "ExternalTicketDAO",
    "ExternalTicketCommentDAO",
]
