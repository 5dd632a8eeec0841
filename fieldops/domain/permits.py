# SPDX-License-Identifier: Apache-2.0

"""
HSE permit gate.

Tickets with an intervention type are hazard-classified and need an
approved safety permit before they can be neutralized.
"""

from typing import Optional, Sequence

from ..models.entities import HSEPermit, Ticket
from ..models.enums import HSEPermitStatus, HSEPermitType
from ..models.results import DeficiencyKind, ValidationResult


def requires_hse(ticket: Ticket) -> bool:
    """Check if the ticket's intervention needs a safety permit."""
    return ticket.intervention_type is not None


def find_approved_permit(ticket: Ticket, permits: Sequence[HSEPermit]) -> Optional[HSEPermit]:
    """
    Find the first approved permit issued for this ticket.
    
    Args:
        ticket: Ticket to look up
        permits: Permits to search, possibly belonging to other tickets
        
    Returns:
        Matching permit or None
    """
    for permit in permits:
        if permit.ticket_id == ticket.id and permit.status == HSEPermitStatus.APPROVED:
            return permit
    return None


def validate_permits(ticket: Ticket, permits: Sequence[HSEPermit]) -> ValidationResult:
    """Validate that a hazard-classified ticket holds an approved permit."""
    result = ValidationResult()
    
    if requires_hse(ticket) and find_approved_permit(ticket, permits) is None:
        result.add(
            DeficiencyKind.MISSING_PERMIT,
            "Approved HSE permit required",
            subject=HSEPermitType(ticket.intervention_type).value
        )
    
    return result
