"""
Unit tests for TicketRepository.

WHAT: Submission, two-tier lookup and status updates across the local
store and the external database.

WHY: Verifies that:
1. Submissions are stored Open with no comments
2. Lookups prefer the external database and fall back to local
3. Updates append exactly one comment per note
4. External updates translate the status and mirror into the local store

HOW: Local store is in memory; the external database is in-memory SQLite.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from support_api.core.exceptions import DatabaseError
from support_api.dao.ticket import ExternalTicketDAO
from support_api.schemas.ticket import (
    NOT_AVAILABLE,
    TicketSource,
    TicketStatus,
    TicketSubmission,
)
from support_api.services.ticket_repository import TicketRepository, clean_note, external_to_ticket
from tests.factories import BASE_TIME, ExternalTicketFactory, TicketFactory


class TestSubmit:
    """Tests for ticket submission."""

    @pytest.mark.asyncio
    async def test_submit_creates_open_ticket(self, repository, sample_submission):
        ticket = await repository.submit(TicketSubmission(**sample_submission))

        assert ticket.status == TicketStatus.OPEN
        assert ticket.comments == []
        assert ticket.created_at == ticket.updated_at
        assert ticket.id == "T-100"

        lookup = await repository.find_by_id("T-100")
        assert lookup.source == TicketSource.LOCAL
        assert lookup.ticket == ticket

    @pytest.mark.asyncio
    async def test_submit_fills_defaults(self, repository):
        submission = TicketSubmission(
            ticketNumber="T-5",
            userName="Bo",
            userEmail="bo@x.com",
            issue="screen flicker",
            companyName="",
        )

        ticket = await repository.submit(submission)

        assert ticket.user_phone == NOT_AVAILABLE
        assert ticket.any_desk_id == NOT_AVAILABLE
        assert ticket.company_name == NOT_AVAILABLE
        assert ticket.priority == "Medium"
        assert ticket.contact_preference is None

    @pytest.mark.asyncio
    async def test_list_for_user(self, repository, sample_submission):
        await repository.submit(TicketSubmission(**sample_submission))

        assert len(await repository.list_for_user("jane@x.com")) == 1
        assert len(await repository.list_for_user("100")) == 1
        assert await repository.list_for_user("T-101") == []


class TestLocalUpdate:
    """Updates of tickets that only exist locally."""

    @pytest.mark.asyncio
    async def test_update_not_found(self, repository):
        lookup = await repository.update_status("T-404", TicketStatus.CLOSED, "note")

        assert lookup.source == TicketSource.NOT_FOUND
        assert lookup.ticket is None
        assert lookup.found is False

    @pytest.mark.asyncio
    async def test_update_with_note_appends_one_comment(self, repository, local_dao):
        await local_dao.add(TicketFactory.build())

        lookup = await repository.update_status("T-100", TicketStatus.RESOLVED, "fixed")

        ticket = lookup.ticket
        assert lookup.source == TicketSource.LOCAL
        assert ticket.status == TicketStatus.RESOLVED
        assert len(ticket.comments) == 1
        assert ticket.comments[0].text == "fixed"
        assert ticket.comments[0].author == "Support Bot"
        assert ticket.comments[0].created_at > BASE_TIME
        assert ticket.updated_at == ticket.comments[0].created_at

        stored = await local_dao.get_by_number("T-100")
        assert stored == ticket

    @pytest.mark.asyncio
    async def test_update_without_note_keeps_comments(self, repository, local_dao):
        await local_dao.add(TicketFactory.build())
        await repository.update_status("T-100", TicketStatus.IN_PROGRESS, "looking")

        lookup = await repository.update_status("T-100", TicketStatus.CLOSED)

        assert lookup.ticket.status == TicketStatus.CLOSED
        assert [c.text for c in lookup.ticket.comments] == ["looking"]

    @pytest.mark.asyncio
    async def test_blank_note_is_ignored(self, repository, local_dao):
        await local_dao.add(TicketFactory.build())

        lookup = await repository.update_status("T-100", TicketStatus.OPEN, "   ")

        assert lookup.ticket.comments == []

    @pytest.mark.asyncio
    async def test_any_transition_is_allowed(self, repository, local_dao):
        await local_dao.add(TicketFactory.build(status=TicketStatus.CLOSED))

        lookup = await repository.update_status("T-100", TicketStatus.OPEN)

        assert lookup.ticket.status == TicketStatus.OPEN


class TestExternalLookup:
    """Two-tier lookup with the external database configured."""

    @pytest.mark.asyncio
    async def test_external_ticket_preferred(self, external_repository, local_dao, db_session):
        await local_dao.add(TicketFactory.build(ticket_number="EXT-1", issue="local copy"))
        await ExternalTicketFactory.create(db_session)

        lookup = await external_repository.find_by_id("EXT-1")

        assert lookup.source == TicketSource.EXTERNAL
        assert lookup.ticket.issue == "VPN drops every hour"
        assert lookup.ticket.status == TicketStatus.IN_PROGRESS
        assert lookup.ticket.user_name == "Sam Ext"
        assert lookup.ticket.company_name == "Acme"
        assert lookup.ticket.user_phone == NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_falls_back_to_local(self, external_repository, local_dao, db_session):
        await ExternalTicketFactory.create(db_session)
        await local_dao.add(TicketFactory.build(ticket_number="T-7"))

        lookup = await external_repository.find_by_id("T-7")

        assert lookup.source == TicketSource.LOCAL

    @pytest.mark.asyncio
    async def test_not_found_anywhere(self, external_repository):
        lookup = await external_repository.find_by_id("NOPE")

        assert lookup.source == TicketSource.NOT_FOUND

    @pytest.mark.asyncio
    async def test_external_error_falls_back_to_local(self, local_dao, monkeypatch):
        """A failing external query is logged and the local store answers."""
        await local_dao.add(TicketFactory.build())
        session = MagicMock()
        session.rollback = AsyncMock()
        monkeypatch.setattr(
            ExternalTicketDAO,
            "get_by_reference_with_relations",
            AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down"))),
        )
        repository = TicketRepository(local=local_dao, external_session=session)

        lookup = await repository.find_by_id("T-100")

        assert lookup.source == TicketSource.LOCAL
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_database_falls_back_to_local(self, local_dao, unreachable_session):
        """A refused connection is not wrapped by SQLAlchemy; the local store still answers."""
        await local_dao.add(TicketFactory.build())
        repository = TicketRepository(local=local_dao, external_session=unreachable_session)

        lookup = await repository.find_by_id("T-100")

        assert lookup.source == TicketSource.LOCAL
        assert lookup.ticket.ticket_number == "T-100"

    @pytest.mark.asyncio
    async def test_unreachable_database_update_uses_local(self, local_dao, unreachable_session):
        await local_dao.add(TicketFactory.build())
        repository = TicketRepository(local=local_dao, external_session=unreachable_session)

        lookup = await repository.update_status("T-100", TicketStatus.CLOSED, "rebooted")

        assert lookup.source == TicketSource.LOCAL
        assert lookup.ticket.status == TicketStatus.CLOSED
        assert [c.text for c in lookup.ticket.comments] == ["rebooted"]

    @pytest.mark.asyncio
    async def test_failed_rollback_still_falls_back(self, local_dao, monkeypatch):
        await local_dao.add(TicketFactory.build())
        session = MagicMock()
        session.rollback = AsyncMock(side_effect=ConnectionResetError("gone"))
        monkeypatch.setattr(
            ExternalTicketDAO,
            "get_by_reference_with_relations",
            AsyncMock(side_effect=ConnectionRefusedError(111, "Connect call failed")),
        )
        repository = TicketRepository(local=local_dao, external_session=session)

        lookup = await repository.find_by_id("T-100")

        assert lookup.source == TicketSource.LOCAL

    @pytest.mark.asyncio
    async def test_missing_relations_default_to_na(self, db_session):
        row = await ExternalTicketFactory.create(
            db_session,
            submitter_name=None,
            submitter_email=None,
            company_name=None,
            anydesk_id=None,
            priority=None,
            status="unknown",
        )

        ticket = external_to_ticket(row)

        assert ticket.user_name == NOT_AVAILABLE
        assert ticket.user_email == NOT_AVAILABLE
        assert ticket.company_name == NOT_AVAILABLE
        assert ticket.any_desk_id == NOT_AVAILABLE
        assert ticket.priority == "Medium"
        assert ticket.status == TicketStatus.OPEN


class TestExternalUpdate:
    """Status updates of tickets from the external database."""

    @pytest.mark.asyncio
    async def test_update_writes_external_and_mirrors_local(
        self, external_repository, local_dao, db_session
    ):
        row = await ExternalTicketFactory.create(db_session, comment_texts=["seen"])

        lookup = await external_repository.update_status("EXT-1", TicketStatus.RESOLVED, "fixed")

        assert lookup.source == TicketSource.EXTERNAL
        assert row.status == "completed"
        assert [c.text for c in row.comments] == ["seen", "fixed"]
        assert row.comments[-1].author_name == "Support Bot"

        assert lookup.ticket.status == TicketStatus.RESOLVED
        assert [c.text for c in lookup.ticket.comments] == ["seen", "fixed"]

        local = await local_dao.get_by_number("EXT-1")
        assert local.status == TicketStatus.RESOLVED
        assert local.user_email == "sam@ext.com"
        assert [c.text for c in local.comments] == ["seen", "fixed"]

    @pytest.mark.asyncio
    async def test_update_overwrites_existing_local_copy(
        self, external_repository, local_dao, db_session
    ):
        await local_dao.add(TicketFactory.build(ticket_number="EXT-1", issue="stale"))
        await ExternalTicketFactory.create(db_session)

        await external_repository.update_status("EXT-1", TicketStatus.CLOSED)

        stored = await local_dao.list_all()
        assert len(stored) == 1
        assert stored[0].issue == "VPN drops every hour"
        assert stored[0].status == TicketStatus.CLOSED

    @pytest.mark.asyncio
    async def test_external_write_failure_raises_database_error(
        self, external_repository, db_session, monkeypatch
    ):
        await ExternalTicketFactory.create(db_session)
        monkeypatch.setattr(
            ExternalTicketDAO,
            "change_status",
            AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("locked"))),
        )

        with pytest.raises(DatabaseError):
            await external_repository.update_status("EXT-1", TicketStatus.CLOSED)


class TestCleanNote:
    """Notes shared by the stored comment and the customer email."""

    @pytest.mark.parametrize("note", [None, "", "   ", "\n\t"])
    def test_blank_notes_become_none(self, note):
        assert clean_note(note) is None

    def test_text_is_kept_as_given(self):
        assert clean_note("  fixed  ") == "  fixed  "
