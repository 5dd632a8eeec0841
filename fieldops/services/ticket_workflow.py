# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Ticket workflow service wrapping the rule engine with tracing and logging.

The service resolves the records a caller hands in, runs the pure domain
functions, and reports the outcome. It never persists anything; applying
an updated record is the caller's job.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence
from opentelemetry import trace

from ..domain import lifecycle, sla
from ..domain.tickets import can_neutralize
from ..exceptions import ConflictException, NotFoundException, ValidationException
from ..models.base import GeoPoint
from ..models.entities import EvidenceBundle, EvidenceItem, HSEPermit, Site, Ticket
from ..models.results import NeutralizationVerdict, WorkflowResult
from ..utils.clock import REFERENCE_TIMEZONE, Clock, format_reference_timestamp, resolve_now

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class TicketWorkflowService:
    """Service for ticket lifecycle decisions with an injectable clock."""

    def __init__(self, clock: Optional[Clock] = None, reference_tz: timezone = REFERENCE_TIMEZONE):
        """
        Initialize workflow service.

        Args:
            clock: Time source; the real reference-timezone clock when omitted
            reference_tz: Timezone for naive timestamps and rendered deadlines
        """
        self.clock = clock
        self.reference_tz = reference_tz

    def now(self) -> datetime:
        """Current time according to the configured clock."""
        return resolve_now(clock=self.clock, tz=self.reference_tz)

    def resolve_site(self, ticket: Ticket, sites: Sequence[Site]) -> Site:
        """
        Resolve the ticket's site reference.

        Raises:
            NotFoundException: No site matches the reference
            ConflictException: More than one site matches the reference
        """
        site = lifecycle.resolve_site(ticket, sites)
        if site is not None:
            return site

        check = lifecycle.validate_site_reference(ticket, sites)
        message = check.errors[0] if check.errors else f"Site not found: {ticket.site_id}"
        if any(s.id == ticket.site_id for s in sites):
            raise ConflictException(message)
        raise NotFoundException(message)

    def check_neutralization(
        self,
        ticket: Ticket,
        evidence_bundle: Optional[EvidenceBundle],
        evidence_items: Sequence[EvidenceItem],
        hse_permits: Sequence[HSEPermit],
        sites: Sequence[Site]
    ) -> NeutralizationVerdict:
        """Run the neutralization guard for a ticket."""
        with tracer.start_as_current_span("ticket_workflow.check_neutralization") as span:
            span.set_attributes({
                "ticket.id": ticket.id,
                "ticket.status": str(ticket.status),
                "ticket.priority": str(ticket.priority)
            })

            site = self.resolve_site(ticket, sites)
            verdict = can_neutralize(ticket, evidence_bundle, evidence_items, hse_permits, site)

            span.set_attribute("ticket.can_neutralize", verdict.can_neutralize)
            self._log_outcome("Neutralization check", ticket, verdict.can_neutralize, verdict.reasons)

            return verdict

    def ensure_can_neutralize(
        self,
        ticket: Ticket,
        evidence_bundle: Optional[EvidenceBundle],
        evidence_items: Sequence[EvidenceItem],
        hse_permits: Sequence[HSEPermit],
        sites: Sequence[Site]
    ) -> None:
        """
        Raise when the ticket cannot be neutralized.

        Raises:
            ValidationException: With every blocking reason
        """
        verdict = self.check_neutralization(ticket, evidence_bundle, evidence_items, hse_permits, sites)
        if not verdict.can_neutralize:
            raise ValidationException("Ticket cannot be neutralized", verdict.reasons)

    def neutralize(
        self,
        ticket: Ticket,
        evidence_bundle: Optional[EvidenceBundle],
        evidence_items: Sequence[EvidenceItem],
        hse_permits: Sequence[HSEPermit],
        sites: Sequence[Site]
    ) -> WorkflowResult:
        """Neutralize a ticket, returning the updated copy on success."""
        with tracer.start_as_current_span("ticket_workflow.neutralize") as span:
            span.set_attribute("ticket.id", ticket.id)

            site = self.resolve_site(ticket, sites)
            result = lifecycle.neutralize_ticket(
                ticket, evidence_bundle, evidence_items, hse_permits, site, self.now()
            )

            span.set_attribute("workflow.success", result.success)
            self._log_outcome("Neutralization", ticket, result.success, result.validation_errors)

            return result

    def register_arrival(self, ticket: Ticket, point: GeoPoint, sites: Sequence[Site]) -> WorkflowResult:
        """Register crew arrival at the ticket's site."""
        with tracer.start_as_current_span("ticket_workflow.register_arrival") as span:
            span.set_attributes({
                "ticket.id": ticket.id,
                "arrival.lat": point.lat,
                "arrival.lng": point.lng
            })

            site = self.resolve_site(ticket, sites)
            result = lifecycle.register_arrival(ticket, point, site, self.now())

            span.set_attribute("workflow.success", result.success)
            self._log_outcome("Arrival", ticket, result.success, result.validation_errors)

            return result

    def validate_bundle(
        self,
        ticket: Ticket,
        evidence_bundle: EvidenceBundle,
        evidence_items: Sequence[EvidenceItem],
        sites: Sequence[Site],
        validator_user_id: str
    ) -> WorkflowResult:
        """Validate a ticket's evidence bundle on behalf of a back-office user."""
        with tracer.start_as_current_span("ticket_workflow.validate_bundle") as span:
            span.set_attributes({
                "ticket.id": ticket.id,
                "bundle.id": evidence_bundle.id,
                "validator.user_id": validator_user_id
            })

            if evidence_bundle.ticket_id != ticket.id:
                raise ConflictException(
                    f"Evidence bundle {evidence_bundle.id} does not belong to ticket {ticket.id}"
                )

            site = self.resolve_site(ticket, sites)
            result = lifecycle.validate_bundle(
                evidence_bundle, evidence_items, site, validator_user_id, self.now()
            )

            span.set_attribute("workflow.success", result.success)
            self._log_outcome("Bundle validation", ticket, result.success, result.validation_errors)

            return result

    def sla_snapshot(self, ticket: Ticket, site: Optional[Site] = None) -> Dict[str, Any]:
        """
        Build the SLA summary shown next to a ticket.

        Uses the stored deadline, or computes one from priority and zone.
        Excluded tickets are never reported as overdue.

        Returns:
            Dictionary with deadline, remaining minutes, overdue flag and
            formatted remaining time
        """
        deadline = sla.effective_sla_deadline(ticket, site)
        excluded = ticket.is_sla_excluded()
        with_deadline = ticket.model_copy(update={"sla_deadline_at": deadline})
        status = sla.calculate_sla_remaining(with_deadline, now=self.now(), tz=self.reference_tz)

        return {
            "ticket_id": ticket.id,
            "priority": str(ticket.priority),
            "sla_hours": sla.get_sla_hours_by_priority(ticket.priority, site.zone if site else None),
            "deadline": format_reference_timestamp(deadline, self.reference_tz),
            "remaining_minutes": status.remaining_minutes,
            "is_overdue": status.is_overdue and not excluded,
            "remaining": sla.format_sla_time(status.remaining_minutes),
            "excluded": excluded
        }

    def _log_outcome(self, operation: str, ticket: Ticket, success: bool, reasons: Sequence[str]) -> None:
        if success:
            logger.info(
                f"{operation} allowed",
                extra={"extra_fields": {"ticket_id": ticket.id}}
            )
        else:
            logger.warning(
                f"{operation} rejected",
                extra={
                    "extra_fields": {
                        "ticket_id": ticket.id,
                        "reasons": list(reasons)
                    }
                }
            )
