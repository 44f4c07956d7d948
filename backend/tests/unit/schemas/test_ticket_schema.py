"""
Tests for the ticket schemas.

WHY: The stored document and the API share one camelCase shape; these
tests pin the aliases, defaults and status normalization.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from support_api.schemas.ticket import (
    Ticket,
    TicketStatus,
    TicketSubmission,
)


class TestTicket:
    """Tests for the stored Ticket model."""

    def test_accepts_camel_case(self):
        ticket = Ticket.model_validate(
            {
                "ticketNumber": "T-1",
                "userName": "Jane",
                "userEmail": "jane@x.com",
                "issue": "printer down",
                "anyDeskId": "42",
            }
        )

        assert ticket.any_desk_id == "42"
        assert ticket.id == "T-1"
        assert ticket.user_phone == "N/A"
        assert ticket.priority == "Medium"
        assert ticket.status == TicketStatus.OPEN

    def test_dumps_camel_case(self):
        ticket = Ticket(ticket_number="T-1", user_name="Jane", user_email="j@x.com", issue="x")

        data = ticket.model_dump(mode="json", by_alias=True)

        assert {"ticketNumber", "userName", "anyDeskId", "createdAt", "updatedAt"} <= set(data)

    def test_unknown_status_normalized(self):
        ticket = Ticket(
            ticket_number="T-1", user_name="J", user_email="j@x.com", issue="x", status="Pending"
        )
        assert ticket.status == TicketStatus.OPEN

    def test_explicit_id_kept(self):
        ticket = Ticket(id="legacy-7", ticket_number="T-1", user_name="J", user_email="j@x.com", issue="x")
        assert ticket.id == "legacy-7"


class TestTicketSubmission:
    """Tests for the submission body."""

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            TicketSubmission.model_validate({"ticketNumber": "T-1", "userName": "J", "userEmail": "j@x.com"})

    def test_empty_string_rejected(self):
        with pytest.raises(ValidationError):
            TicketSubmission.model_validate(
                {"ticketNumber": "", "userName": "J", "userEmail": "j@x.com", "issue": "x"}
            )

    def test_to_ticket(self):
        now = datetime(2024, 3, 1, tzinfo=timezone.utc)
        submission = TicketSubmission.model_validate(
            {
                "ticketNumber": "T-1",
                "userName": "J",
                "userEmail": "j@x.com",
                "issue": "x",
                "priority": "",
                "scheduledTime": "Tomorrow 10:00",
            }
        )

        ticket = submission.to_ticket(now=now)

        assert ticket.priority == "Medium"
        assert ticket.scheduled_time == "Tomorrow 10:00"
        assert ticket.created_at == ticket.updated_at == now
        assert ticket.comments == []
