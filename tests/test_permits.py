# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the HSE permit gate.
"""

from fieldops.domain.permits import find_approved_permit, requires_hse, validate_permits
from fieldops.models.results import DeficiencyKind


class TestPermitGate:
    """Test HSE permit requirements."""

    def test_no_intervention_type(self, ticket):
        """Test tickets without a hazard category need no permit."""
        assert not requires_hse(ticket)
        assert validate_permits(ticket, []).is_valid

    def test_hazard_without_permit(self, make_ticket):
        """Test a hazard-classified ticket with no permits."""
        ticket = make_ticket(intervention_type="RADIO")

        result = validate_permits(ticket, [])

        assert requires_hse(ticket)
        assert result.errors == ["Approved HSE permit required"]
        assert result.kinds == [DeficiencyKind.MISSING_PERMIT]
        assert result.deficiencies[0].subject == "RADIO"

    def test_pending_and_rejected_do_not_count(self, make_ticket, make_permit):
        """Test only approved permits satisfy the gate."""
        ticket = make_ticket(intervention_type="CORTE ENERGIA")
        permits = [
            make_permit(ticket.id, status="pending", permit_type="CORTE ENERGIA"),
            make_permit(ticket.id, status="rejected", permit_type="CORTE ENERGIA"),
        ]

        assert find_approved_permit(ticket, permits) is None
        assert not validate_permits(ticket, permits).is_valid

    def test_permit_of_other_ticket_ignored(self, make_ticket, make_permit):
        """Test permits are matched by ticket."""
        ticket = make_ticket(intervention_type="TX")
        other = make_ticket(intervention_type="TX")

        result = validate_permits(ticket, [make_permit(other.id, permit_type="TX")])

        assert result.errors == ["Approved HSE permit required"]

    def test_approved_permit(self, make_ticket, make_permit):
        """Test an approved permit opens the gate."""
        ticket = make_ticket(intervention_type="PEXT - Corte de FO")
        permits = [
            make_permit(ticket.id, status="pending"),
            make_permit(ticket.id, status="approved"),
        ]

        assert find_approved_permit(ticket, permits) is permits[1]
        assert validate_permits(ticket, permits).is_valid

    def test_permit_type_not_required_to_match(self, make_ticket, make_permit):
        """Test any approved permit of the ticket satisfies the gate."""
        ticket = make_ticket(intervention_type="RADIO")

        assert validate_permits(ticket, [make_permit(ticket.id, permit_type="SEGURIDAD")]).is_valid
