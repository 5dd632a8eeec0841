# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the ticket workflow service.
"""

import logging
import pytest
from datetime import timedelta
from unittest.mock import MagicMock, Mock, patch

from fieldops.exceptions import ConflictException, NotFoundException, ValidationException
from fieldops.models import EvidenceBundle, TicketStatus
from fieldops.services.ticket_workflow import TicketWorkflowService


@pytest.fixture
def service(fixed_now):
    """Workflow service with a pinned clock."""
    return TicketWorkflowService(clock=lambda: fixed_now)


class TestSiteResolution:
    """Test site lookup failures."""

    def test_site_not_found(self, service, ticket):
        """Test a missing site raises not found."""
        with pytest.raises(NotFoundException) as exc_info:
            service.resolve_site(ticket, [])

        assert exc_info.value.error_type == "resource-not-found"
        assert ticket.site_id in exc_info.value.message

    def test_ambiguous_site(self, service, ticket, site):
        """Test duplicate sites raise a conflict."""
        with pytest.raises(ConflictException):
            service.resolve_site(ticket, [site, site.model_copy()])


class TestNeutralization:
    """Test neutralization through the service."""

    def test_check_neutralization(self, service, ticket, bundle, valid_items, site):
        """Test a passing guard."""
        verdict = service.check_neutralization(ticket, bundle, valid_items, [], [site])

        assert verdict.can_neutralize

    def test_ensure_can_neutralize_raises(self, service, ticket, site):
        """Test blocking reasons are raised as a validation error."""
        with pytest.raises(ValidationException) as exc_info:
            service.ensure_can_neutralize(ticket, None, [], [], [site])

        assert exc_info.value.message == "Ticket cannot be neutralized"
        assert exc_info.value.validation_errors == ["No evidence bundle"]

    def test_neutralize_uses_clock(self, service, ticket, bundle, valid_items, site, fixed_now):
        """Test the injected clock stamps the neutralization."""
        result = service.neutralize(ticket, bundle, valid_items, [], [site])

        assert result.success
        assert result.record.status == TicketStatus.NEUTRALIZED
        assert result.record.neutralized_at == fixed_now

    def test_rejection_is_logged(self, service, make_ticket, bundle, valid_items, site, caplog):
        """Test rejected operations are logged with their reasons."""
        ticket = make_ticket(intervention_type="RADIO")

        with caplog.at_level(logging.WARNING, logger="fieldops.services.ticket_workflow"):
            service.neutralize(ticket, bundle, valid_items, [], [site])

        record = caplog.records[-1]
        assert record.getMessage() == "Neutralization rejected"
        assert record.extra_fields["reasons"] == ["Approved HSE permit required"]

    def test_neutralize_validated_ticket_rejected(self, service, make_ticket, bundle, valid_items, site, fixed_now):
        """Test a validated ticket is not moved back to neutralized."""
        ticket = make_ticket(
            status="validated",
            neutralized_at=fixed_now - timedelta(minutes=30),
            validated_at=fixed_now - timedelta(minutes=10)
        )

        result = service.neutralize(ticket, bundle, valid_items, [], [site])

        assert not result.success
        assert result.validation_errors == ["Invalid status transition from validated to neutralized"]


class TestArrival:
    """Test arrival through the service."""

    def test_register_arrival(self, service, make_ticket, site, inside_point, fixed_now):
        """Test arrival within the geofence."""
        ticket = make_ticket(status="assignment", arrived_at=None)

        result = service.register_arrival(ticket, inside_point, [site])

        assert result.success
        assert result.record.arrived_at == fixed_now

    def test_register_arrival_outside(self, service, make_ticket, site, outside_point):
        """Test arrival outside the geofence."""
        ticket = make_ticket(status="assignment", arrived_at=None)

        result = service.register_arrival(ticket, outside_point, [site])

        assert not result.success
        assert "Must be within 200m" in result.validation_errors[0]


class TestBundleValidation:
    """Test bundle validation through the service."""

    def test_validate_bundle(self, service, ticket, bundle, valid_items, site, fixed_now):
        """Test a valid bundle is marked valid at the clock time."""
        result = service.validate_bundle(ticket, bundle, valid_items, [site], "backoffice-1")

        assert result.success
        assert result.record.validated_at == fixed_now

    def test_bundle_of_other_ticket(self, service, ticket, valid_items, site):
        """Test a bundle belonging to another ticket."""
        foreign = EvidenceBundle(ticket_id="another-ticket")

        with pytest.raises(ConflictException):
            service.validate_bundle(ticket, foreign, valid_items, [site], "backoffice-1")


class TestSLASnapshot:
    """Test SLA summary."""

    def test_snapshot_computes_deadline(self, service, make_ticket, site, fixed_now):
        """Test a P1 ticket opened three hours ago."""
        ticket = make_ticket(opened_at=fixed_now - timedelta(hours=3))

        snapshot = service.sla_snapshot(ticket, site)

        assert snapshot["ticket_id"] == ticket.id
        assert snapshot["priority"] == "P1"
        assert snapshot["sla_hours"] == 8
        assert snapshot["deadline"] == "2024-11-07T15:30:00-05:00"
        assert snapshot["remaining_minutes"] == 300
        assert snapshot["remaining"] == "5h 0m"
        assert snapshot["is_overdue"] is False
        assert snapshot["excluded"] is False

    def test_snapshot_overdue(self, service, make_ticket, site, fixed_now):
        """Test a stored deadline that has passed."""
        ticket = make_ticket(sla_deadline_at=fixed_now - timedelta(minutes=10))

        snapshot = service.sla_snapshot(ticket, site)

        assert snapshot["remaining_minutes"] == 0
        assert snapshot["is_overdue"] is True
        assert snapshot["remaining"] == "0m"

    def test_snapshot_excluded_not_overdue(self, service, make_ticket, site, fixed_now):
        """Test an SLA exclusion clears the overdue flag."""
        ticket = make_ticket(
            sla_deadline_at=fixed_now - timedelta(minutes=10),
            exclusion_cause="Site access denied by landlord"
        )

        snapshot = service.sla_snapshot(ticket, site)

        assert snapshot["excluded"] is True
        assert snapshot["is_overdue"] is False
        assert snapshot["remaining_minutes"] == 0

    def test_snapshot_does_not_mutate(self, service, ticket, site):
        """Test the ticket keeps an unset deadline."""
        service.sla_snapshot(ticket, site)

        assert ticket.sla_deadline_at is None


class TestTracing:
    """Test span creation around workflow operations."""

    @patch('fieldops.services.ticket_workflow.tracer')
    def test_check_neutralization_span(self, mock_tracer, service, ticket, bundle, valid_items, site):
        """Test the guard runs inside a named span with the verdict recorded."""
        mock_span = MagicMock()
        mock_tracer.start_as_current_span.return_value.__enter__.return_value = mock_span

        service.check_neutralization(ticket, bundle, valid_items, [], [site])

        mock_tracer.start_as_current_span.assert_called_once_with("ticket_workflow.check_neutralization")
        mock_span.set_attribute.assert_called_with("ticket.can_neutralize", True)

    def test_clock_read_per_operation(self, make_ticket, site, inside_point, fixed_now):
        """Test the clock is consulted when an operation needs the time."""
        clock = Mock(return_value=fixed_now)
        service = TicketWorkflowService(clock=clock)
        ticket = make_ticket(status="assignment", arrived_at=None)

        service.register_arrival(ticket, inside_point, [site])

        clock.assert_called_once_with()
