# SPDX-License-Identifier: Apache-2.0

"""
Evidence and checklist validation.

This module contains pure functions that check submitted evidence items
against geofence, ordering and completeness rules. Validators never raise
for incomplete input; every deficiency is accumulated in the result.
"""

from typing import List, Optional, Sequence, Tuple

from ..models.entities import ChecklistData, EvidenceItem, ExifData, Site
from ..models.enums import EvidenceType
from ..models.results import DeficiencyKind, ValidationResult
from ..utils.clock import ensure_aware
from .geodesy import EVIDENCE_GEOFENCE_RADIUS_METERS, distance_meters

# (field, message) pairs checked in order
REQUIRED_CHECKLIST_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("failure_type", "Missing failure type"),
    ("action_taken", "Missing action taken"),
    ("post_tests", "Missing post-intervention tests"),
)

PHOTO_LABELS = {
    EvidenceType.PHOTO_BEFORE: "BEFORE",
    EvidenceType.PHOTO_AFTER: "AFTER",
}


def validate_checklist(checklist: Optional[ChecklistData]) -> ValidationResult:
    """
    Validate a completed-intervention checklist.

    Args:
        checklist: Checklist payload, or None when it was never filled in

    Returns:
        ValidationResult with one deficiency per missing required field
    """
    result = ValidationResult()

    if checklist is None:
        result.add(DeficiencyKind.INCOMPLETE_CHECKLIST, "Checklist not completed", subject="checklist")
        return result

    for field_name, message in REQUIRED_CHECKLIST_FIELDS:
        value = getattr(checklist, field_name, None)
        if not value or not str(value).strip():
            result.add(DeficiencyKind.INCOMPLETE_CHECKLIST, message, subject=field_name)

    return result


def validate_exif(exif: Optional[ExifData]) -> ValidationResult:
    """
    Validate photo capture metadata.

    Strict check for callers that require complete EXIF data; the
    neutralization gate itself treats EXIF as optional.
    """
    result = ValidationResult()

    if exif is None:
        result.add(DeficiencyKind.INVALID_EXIF, "No EXIF data", subject="exif")
        return result

    if exif.timestamp is None:
        result.add(DeficiencyKind.INVALID_EXIF, "Missing EXIF timestamp", subject="timestamp")

    if exif.gps is None:
        result.add(DeficiencyKind.INVALID_EXIF, "Missing EXIF GPS location", subject="gps")

    return result


def find_items_by_type(items: Sequence[EvidenceItem], evidence_type: EvidenceType) -> List[EvidenceItem]:
    """Return all items of a type in submission order."""
    return [item for item in items if item.type == evidence_type]


def _check_photo_geofence(
    photo: EvidenceItem,
    site: Site,
    radius_meters: float,
    result: ValidationResult
) -> None:
    # Photos without a geo-tag are not rejected
    if photo.geo is None:
        return

    distance = distance_meters(photo.geo, site.center)
    if distance > radius_meters:
        photo_type = EvidenceType(photo.type)
        label = PHOTO_LABELS[photo_type]
        result.add(
            DeficiencyKind.OUTSIDE_GEOFENCE,
            f"{label} photo taken outside the geofence",
            subject=photo_type.value,
            distance_meters=round(distance, 1),
            radius_meters=radius_meters
        )


def validate_evidence(
    items: Sequence[EvidenceItem],
    site: Site,
    geofence_radius: float = EVIDENCE_GEOFENCE_RADIUS_METERS
) -> ValidationResult:
    """
    Validate the evidence submitted for a ticket.

    The first item of each required type is evaluated. Extra items of the
    same type are reported as warnings and otherwise ignored.

    Args:
        items: Evidence items of the ticket's bundle
        site: Site the ticket belongs to
        geofence_radius: Maximum capture distance from the site in meters

    Returns:
        ValidationResult with all deficiencies found
    """
    result = ValidationResult()

    selected = {}
    for evidence_type in (EvidenceType.PHOTO_BEFORE, EvidenceType.PHOTO_AFTER, EvidenceType.CHECKLIST):
        matches = find_items_by_type(items, evidence_type)
        selected[evidence_type] = matches[0] if matches else None
        if len(matches) > 1:
            result.warnings.append(
                f"{len(matches)} items of type {evidence_type.value} submitted; only the first is evaluated"
            )

    photo_before = selected[EvidenceType.PHOTO_BEFORE]
    photo_after = selected[EvidenceType.PHOTO_AFTER]
    checklist_item = selected[EvidenceType.CHECKLIST]

    if photo_before is None:
        result.add(DeficiencyKind.MISSING_EVIDENCE, "Missing BEFORE photo", subject="photo_before")
    else:
        _check_photo_geofence(photo_before, site, geofence_radius, result)

    if photo_after is None:
        result.add(DeficiencyKind.MISSING_EVIDENCE, "Missing AFTER photo", subject="photo_after")
    else:
        _check_photo_geofence(photo_after, site, geofence_radius, result)

    if (
        photo_before is not None and photo_after is not None
        and photo_before.exif is not None and photo_after.exif is not None
        and photo_before.exif.timestamp is not None
        and photo_after.exif.timestamp is not None
    ):
        before_time = ensure_aware(photo_before.exif.timestamp)
        after_time = ensure_aware(photo_after.exif.timestamp)
        if after_time <= before_time:
            result.add(
                DeficiencyKind.PHOTO_ORDER,
                "AFTER photo must be taken later than BEFORE photo",
                subject="photo_after"
            )

    if checklist_item is None:
        result.add(DeficiencyKind.MISSING_EVIDENCE, "Missing checklist", subject="checklist")
    else:
        result.merge(validate_checklist(checklist_item.checklist), prefix="Checklist: ")

    return result


def validate_extra_photos(
    items: Sequence[EvidenceItem],
    site: Site,
    geofence_radius: float = EVIDENCE_GEOFENCE_RADIUS_METERS
) -> ValidationResult:
    """
    Geofence-check the photos that ``validate_evidence`` skips.

    Only photos after the first of each type are checked, so combining both
    validators covers every geo-tagged photo exactly once.
    """
    result = ValidationResult()

    for evidence_type in PHOTO_LABELS:
        for photo in find_items_by_type(items, evidence_type)[1:]:
            _check_photo_geofence(photo, site, geofence_radius, result)

    return result
