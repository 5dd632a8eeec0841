# SPDX-License-Identifier: Apache-2.0

"""
Ticket lifecycle domain logic.

This module contains pure functions for status transitions, timestamp
ordering, arrival registration, neutralization and evidence bundle
validation. Operations that change a record return an updated copy in a
WorkflowResult; the inputs are never mutated.
"""

import hashlib
import json
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..models.base import GeoPoint
from ..models.entities import EvidenceBundle, EvidenceItem, HSEPermit, Site, Ticket
from ..models.enums import TicketStatus
from ..models.results import DeficiencyKind, ValidationResult, WorkflowResult
from ..utils.clock import ensure_aware
from .evidence import validate_evidence, validate_extra_photos
from .geodesy import GEOFENCE_RADIUS_METERS, distance_meters
from .tickets import can_neutralize

LIFECYCLE_ORDER: List[TicketStatus] = [
    TicketStatus.RECEPTION,
    TicketStatus.ASSIGNMENT,
    TicketStatus.ARRIVAL,
    TicketStatus.NEUTRALIZED,
    TicketStatus.VALIDATED,
    TicketStatus.CLOSED,
]

VALID_TRANSITIONS: Dict[TicketStatus, List[TicketStatus]] = {
    TicketStatus.RECEPTION: [TicketStatus.ASSIGNMENT],
    TicketStatus.ASSIGNMENT: [TicketStatus.ARRIVAL],
    TicketStatus.ARRIVAL: [TicketStatus.NEUTRALIZED],
    TicketStatus.NEUTRALIZED: [TicketStatus.VALIDATED],
    TicketStatus.VALIDATED: [TicketStatus.CLOSED],
    TicketStatus.CLOSED: []  # Terminal state
}

# Lifecycle timestamps in the order they must be reached
TIMESTAMP_FIELDS = ("opened_at", "arrived_at", "neutralized_at", "validated_at", "closed_at")

HASH_EXCLUDED_FIELDS = {"id", "hash", "created_at", "updated_at"}


def validate_status_transition(current_status: str, new_status: str) -> ValidationResult:
    """
    Validate ticket status transition.

    Args:
        current_status: Current ticket status
        new_status: Desired new status

    Returns:
        ValidationResult with validation status and errors
    """
    result = ValidationResult()

    try:
        current = TicketStatus(current_status)
        new = TicketStatus(new_status)
    except ValueError:
        result.add(
            DeficiencyKind.INVALID_TRANSITION,
            f"Unknown ticket status: {getattr(current_status, 'value', current_status)} -> "
            f"{getattr(new_status, 'value', new_status)}",
            subject="status"
        )
        return result

    if new not in VALID_TRANSITIONS.get(current, []):
        result.add(
            DeficiencyKind.INVALID_TRANSITION,
            f"Invalid status transition from {current.value} to {new.value}",
            subject="status"
        )

    return result


def validate_lifecycle_timestamps(ticket: Ticket) -> ValidationResult:
    """Check that every set lifecycle timestamp is not earlier than the previous one."""
    result = ValidationResult()
    previous_field: Optional[str] = None
    previous_value: Optional[datetime] = None

    for field_name in TIMESTAMP_FIELDS:
        value = getattr(ticket, field_name)
        if value is None:
            continue
        value = ensure_aware(value)
        if previous_value is not None and value < previous_value:
            result.add(
                DeficiencyKind.TIMESTAMP_ORDER,
                f"{field_name} cannot be earlier than {previous_field}",
                subject=field_name
            )
        previous_field, previous_value = field_name, value

    return result


def _check_not_before(ticket: Ticket, at: datetime, result: ValidationResult) -> None:
    latest = [ensure_aware(v) for v in (getattr(ticket, f) for f in TIMESTAMP_FIELDS) if v is not None]
    if latest and ensure_aware(at) < max(latest):
        result.add(
            DeficiencyKind.TIMESTAMP_ORDER,
            "Event time is earlier than the ticket's last lifecycle timestamp",
            subject="timestamp"
        )


def resolve_site(ticket: Ticket, sites: Sequence[Site]) -> Optional[Site]:
    """Return the ticket's site if exactly one site matches its reference."""
    matches = [site for site in sites if site.id == ticket.site_id]
    return matches[0] if len(matches) == 1 else None


def validate_site_reference(ticket: Ticket, sites: Sequence[Site]) -> ValidationResult:
    """Validate that the ticket's site reference resolves to exactly one site."""
    result = ValidationResult()
    count = sum(1 for site in sites if site.id == ticket.site_id)

    if count == 0:
        result.add(DeficiencyKind.SITE_MISMATCH, f"Site not found: {ticket.site_id}", subject="site_id")
    elif count > 1:
        result.add(
            DeficiencyKind.SITE_MISMATCH,
            f"Site reference is ambiguous: {ticket.site_id} matches {count} sites",
            subject="site_id"
        )

    return result


def register_arrival(
    ticket: Ticket,
    point: GeoPoint,
    site: Site,
    now: datetime,
    radius_meters: float = GEOFENCE_RADIUS_METERS
) -> WorkflowResult:
    """
    Register crew arrival at the ticket's site.

    Arrival uses the stricter arrival geofence.

    Args:
        ticket: Assigned ticket
        point: Crew position at arrival
        site: Site the ticket belongs to
        now: Arrival time
        radius_meters: Arrival geofence radius

    Returns:
        WorkflowResult with the updated ticket or deficiencies
    """
    validation = validate_status_transition(ticket.status, TicketStatus.ARRIVAL)

    if site.id != ticket.site_id:
        validation.add(DeficiencyKind.SITE_MISMATCH, "Site does not belong to the ticket", subject="site_id")

    distance = distance_meters(point, site.center)
    if distance > radius_meters:
        validation.add(
            DeficiencyKind.OUTSIDE_GEOFENCE,
            f"Must be within {radius_meters:.0f}m of the site to register arrival "
            f"(current distance: {round(distance)}m)",
            subject="arrival",
            distance_meters=round(distance, 1),
            radius_meters=radius_meters
        )

    _check_not_before(ticket, now, validation)

    if not validation.is_valid:
        return WorkflowResult(
            success=False,
            error_message="Arrival validation failed",
            deficiencies=validation.deficiencies
        )

    try:
        updated_ticket = ticket.model_copy(deep=True)
        updated_ticket.mark_arrived(now)

        return WorkflowResult(success=True, record=updated_ticket)

    except ValueError as e:
        return WorkflowResult(
            success=False,
            error_message=f"Failed to register arrival: {str(e)}"
        )


def neutralize_ticket(
    ticket: Ticket,
    evidence_bundle: Optional[EvidenceBundle],
    evidence_items: Sequence[EvidenceItem],
    hse_permits: Sequence[HSEPermit],
    site: Site,
    now: datetime
) -> WorkflowResult:
    """
    Apply neutralization when the guard allows it.

    Args:
        ticket: Ticket to neutralize
        evidence_bundle: The ticket's evidence bundle, if any
        evidence_items: Items of that bundle
        hse_permits: Permits to search for an approved one
        site: Site the ticket belongs to
        now: Neutralization time

    Returns:
        WorkflowResult with the updated ticket or the guard's reasons
    """
    verdict = can_neutralize(ticket, evidence_bundle, evidence_items, hse_permits, site)
    deficiencies = list(verdict.deficiencies)

    # Terminal tickets already carry their single reason
    if not ticket.is_terminal():
        transition = validate_status_transition(ticket.status, TicketStatus.NEUTRALIZED)
        deficiencies[:0] = transition.deficiencies

    if verdict.can_neutralize:
        timing = ValidationResult()
        _check_not_before(ticket, now, timing)
        deficiencies.extend(timing.deficiencies)

    if deficiencies:
        return WorkflowResult(
            success=False,
            error_message="Neutralization blocked",
            deficiencies=deficiencies
        )

    try:
        updated_ticket = ticket.model_copy(deep=True)
        updated_ticket.mark_neutralized(now)

        return WorkflowResult(success=True, record=updated_ticket)

    except ValueError as e:
        return WorkflowResult(
            success=False,
            error_message=f"Failed to neutralize ticket: {str(e)}"
        )


def compute_content_hash(item: EvidenceItem) -> str:
    """SHA-256 of the item's canonical JSON, ignoring identity and bookkeeping fields."""
    payload = item.model_dump(mode="json", exclude=HASH_EXCLUDED_FIELDS)
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def verify_content_hash(item: EvidenceItem) -> bool:
    """Check that the stored hash matches the item's content."""
    return bool(item.hash) and item.hash == compute_content_hash(item)


def validate_bundle(
    evidence_bundle: EvidenceBundle,
    evidence_items: Sequence[EvidenceItem],
    site: Site,
    validator_user_id: str,
    now: datetime
) -> WorkflowResult:
    """
    Validate an evidence bundle and mark it valid.

    Every geo-tagged photo of the bundle is checked against the site
    geofence, and items carrying a content hash must match it.

    Args:
        evidence_bundle: Bundle to validate
        evidence_items: Candidate items; only those of this bundle are used
        site: Site the bundle's ticket belongs to
        validator_user_id: User performing the validation
        now: Validation time

    Returns:
        WorkflowResult with the updated bundle or deficiencies
    """
    items = [item for item in evidence_items if item.bundle_id == evidence_bundle.id]

    validation = validate_evidence(items, site)
    validation.merge(validate_extra_photos(items, site))

    for item in items:
        if item.hash and not verify_content_hash(item):
            validation.add(
                DeficiencyKind.CONTENT_HASH_MISMATCH,
                f"Content hash mismatch for evidence {item.id}",
                subject=item.id
            )

    if not validation.is_valid:
        return WorkflowResult(
            success=False,
            error_message="Evidence validation failed",
            deficiencies=validation.deficiencies
        )

    updated_bundle = evidence_bundle.model_copy(deep=True)
    updated_bundle.mark_validated(validator_user_id, now)

    return WorkflowResult(success=True, record=updated_bundle)
