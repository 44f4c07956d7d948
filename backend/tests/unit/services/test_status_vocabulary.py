"""
Tests for status vocabulary translation.

WHY: The local store and the external database use different status
words. Translation must be total (never raise) and round-trip for the
four local labels.
"""

import pytest

from support_api.models.ticket import ExternalTicketStatus
from support_api.schemas.ticket import TicketStatus
from support_api.services.status_vocabulary import (
    from_external,
    normalize_local,
    parse_local,
    to_external,
)


class TestToExternal:
    """Local label to external label."""

    @pytest.mark.parametrize(
        "local,external",
        [
            (TicketStatus.OPEN, ExternalTicketStatus.SUBMITTED),
            (TicketStatus.IN_PROGRESS, ExternalTicketStatus.IN_PROGRESS),
            (TicketStatus.RESOLVED, ExternalTicketStatus.COMPLETED),
            (TicketStatus.CLOSED, ExternalTicketStatus.CLOSED),
        ],
    )
    def test_known_labels(self, local, external):
        assert to_external(local) == external
        assert to_external(local.value) == external

    @pytest.mark.parametrize("value", ["Weird", "", None, "open"])
    def test_unknown_defaults_to_submitted(self, value):
        assert to_external(value) == ExternalTicketStatus.SUBMITTED


class TestFromExternal:
    """External label to local label."""

    def test_assigned_reads_as_in_progress(self):
        assert from_external("assigned") == TicketStatus.IN_PROGRESS

    def test_completed_reads_as_resolved(self):
        assert from_external(ExternalTicketStatus.COMPLETED) == TicketStatus.RESOLVED

    @pytest.mark.parametrize("value", ["archived", "", None, "Closed"])
    def test_unknown_defaults_to_open(self, value):
        assert from_external(value) == TicketStatus.OPEN

    @pytest.mark.parametrize("status", list(TicketStatus))
    def test_round_trip(self, status):
        """Every local label survives a trip through the external vocabulary."""
        assert from_external(to_external(status)) == status


class TestLocalParsing:
    """Parsing and normalizing local labels."""

    def test_parse_rejects_unknown(self):
        assert parse_local("Pending") is None
        assert parse_local("In Progress") == TicketStatus.IN_PROGRESS

    def test_normalize_defaults_to_open(self):
        assert normalize_local("Pending") == TicketStatus.OPEN
        assert normalize_local(None) == TicketStatus.OPEN
        assert normalize_local("Resolved") == TicketStatus.RESOLVED
