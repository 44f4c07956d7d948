"""
Unit tests for the external ticket DAOs.

WHAT: Tests for ExternalTicketDAO and ExternalTicketCommentDAO.

WHY: Verifies that:
1. Tickets resolve by ticket number or surrogate id
2. Submitter, company and comments are loaded with the ticket
3. Status changes write the external label and bump updated_at

HOW: Uses pytest-asyncio with in-memory SQLite database for isolation.
"""

import pytest

from support_api.dao.ticket import ExternalTicketDAO, ExternalTicketCommentDAO
from support_api.models.ticket import ExternalTicketStatus
from tests.factories import ExternalTicketFactory, BASE_TIME


class TestExternalTicketDAOLookup:
    """Tests for ticket lookup."""

    @pytest.mark.asyncio
    async def test_lookup_by_ticket_number(self, db_session):
        created = await ExternalTicketFactory.create(db_session, comment_texts=["first", "second"])

        ticket = await ExternalTicketDAO(db_session).get_by_reference_with_relations("EXT-1")

        assert ticket.id == created.id
        assert ticket.submitter.email == "sam@ext.com"
        assert ticket.company.name == "Acme"
        assert [c.text for c in ticket.comments] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_lookup_by_surrogate_id(self, db_session):
        created = await ExternalTicketFactory.create(db_session)

        ticket = await ExternalTicketDAO(db_session).get_by_reference_with_relations(created.id)

        assert ticket.ticket_number == "EXT-1"

    @pytest.mark.asyncio
    async def test_lookup_missing(self, db_session):
        await ExternalTicketFactory.create(db_session)

        assert await ExternalTicketDAO(db_session).get_by_reference_with_relations("NOPE") is None


class TestExternalTicketDAOWrites:
    """Tests for status changes and comments."""

    @pytest.mark.asyncio
    async def test_change_status(self, db_session):
        ticket = await ExternalTicketFactory.create(db_session)

        await ExternalTicketDAO(db_session).change_status(ticket, ExternalTicketStatus.COMPLETED)

        assert ticket.status == "completed"
        assert ticket.updated_at > BASE_TIME

    @pytest.mark.asyncio
    async def test_add_comment(self, db_session):
        ticket = await ExternalTicketFactory.create(db_session, comment_texts=["first"])

        comment = await ExternalTicketCommentDAO(db_session).add(
            ticket, text="fixed", author_name="Support Bot"
        )

        assert comment.id is not None
        assert comment.ticket_id == ticket.id
        assert [c.text for c in ticket.comments] == ["first", "fixed"]

    @pytest.mark.asyncio
    async def test_get_by_id(self, db_session):
        created = await ExternalTicketFactory.create(db_session)

        ticket = await ExternalTicketDAO(db_session).get_by_id(created.id)

        assert ticket is created
