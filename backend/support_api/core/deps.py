"""
FastAPI dependencies for ticket storage and notifications.

WHY: Route handlers receive their repository and notification service
through ``Depends``, so tests can swap the store, the external session or
the email provider with ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from support_api.dao.local_ticket import LocalTicketDAO
from support_api.db.session import get_external_db
from support_api.db.ticket_store import TicketStore, get_ticket_store
from support_api.services.notification_service import NotificationService
from support_api.services.page_renderer import PageRenderer, get_page_renderer
from support_api.services.ticket_repository import TicketRepository


def get_local_ticket_dao(store: TicketStore = Depends(get_ticket_store)) -> LocalTicketDAO:
    """DAO over the process-wide local ticket store."""
    return LocalTicketDAO(store)


def get_ticket_repository(
    local: LocalTicketDAO = Depends(get_local_ticket_dao),
    external_session: Optional[AsyncSession] = Depends(get_external_db),
) -> TicketRepository:
    """
    Two-tier repository for the current request.

    Args:
        local: Local ticket DAO
        external_session: Hosted database session, or None when disabled

    Returns:
        TicketRepository bound to both stores
    """
    return TicketRepository(local=local, external_session=external_session)


def get_notification_service() -> NotificationService:
    """Notification service using the configured email provider."""
    return NotificationService()


def get_pages() -> PageRenderer:
    return get_page_renderer()
