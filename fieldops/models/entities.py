# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core record models for field-service tickets, sites, evidence and permits.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from .base import BaseEntity, GeoPoint
from .enums import (
    Priority,
    TicketStatus,
    EvidenceType,
    HSEPermitType,
    HSEPermitStatus
)


class Site(BaseEntity):
    """Physical site a crew is dispatched to, anchored by a coordinate."""

    code: str = Field(..., min_length=1, alias="siteCode", description="Site code")
    name: str = Field(..., min_length=1, max_length=200, description="Site name")
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")
    region: str = Field(default="", description="Region classification")
    zone: str = Field(default="", alias="zona", description="Zone classification used for SLA")
    department: Optional[str] = Field(None, alias="departamento", description="Administrative department")
    typology: Optional[str] = Field(None, alias="tipologia", description="Site typology")
    address: Optional[str] = Field(None, description="Street address")
    is_principal: Optional[bool] = Field(None, alias="isPrincipal", description="Whether this is a principal site")
    parent_site_id: Optional[str] = Field(None, alias="parentSiteId", description="Parent site for dependent sites")

    @field_validator('code', 'name')
    @classmethod
    def validate_not_blank(cls, v):
        """Validate site code and name."""
        if not v.strip():
            raise ValueError('Site code and name cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def validate_hierarchy(self):
        """Validate parent relation."""
        if self.parent_site_id and self.parent_site_id == self.id:
            raise ValueError('Site cannot be parent of itself')
        return self

    @property
    def center(self) -> GeoPoint:
        """Geofence anchor of the site."""
        return GeoPoint(lat=self.lat, lng=self.lng)

    def is_dependent(self) -> bool:
        """Check if site hangs off a parent site."""
        return self.parent_site_id is not None


class Ticket(BaseEntity):
    """Repair ticket moving through the field-service lifecycle."""

    itsm_ref: Optional[str] = Field(None, alias="itsmRef", description="External ITSM reference")
    priority: Priority = Field(..., description="Ticket priority")
    status: TicketStatus = Field(default=TicketStatus.RECEPTION, description="Lifecycle status")
    site_id: str = Field(..., alias="siteId", description="Referenced site ID")
    is_dependent: bool = Field(default=False, alias="isDependent", description="Whether the site is a dependent site")
    intervention_type: Optional[HSEPermitType] = Field(
        None, alias="interventionType", description="Hazard category; None means no permit is required"
    )
    description: Optional[str] = Field(None, description="Free-text description")
    opened_at: datetime = Field(..., alias="openedAt", description="Reception timestamp")
    arrived_at: Optional[datetime] = Field(None, alias="arrivedAt", description="Crew arrival timestamp")
    neutralized_at: Optional[datetime] = Field(None, alias="neutralizedAt", description="Neutralization timestamp")
    validated_at: Optional[datetime] = Field(None, alias="validatedAt", description="Validation timestamp")
    closed_at: Optional[datetime] = Field(None, alias="closedAt", description="Closure timestamp")
    sla_deadline_at: Optional[datetime] = Field(None, alias="slaDeadlineAt", description="Computed SLA deadline")
    exclusion_cause: Optional[str] = Field(None, alias="exclusionCause", description="Reason the SLA does not apply")
    recurrence_flag: bool = Field(default=False, alias="recurrenceFlag", description="Repeated fault at the same site")

    def is_terminal(self) -> bool:
        """Check if ticket is already neutralized or closed."""
        return self.status in (TicketStatus.NEUTRALIZED, TicketStatus.CLOSED)

    def is_sla_excluded(self) -> bool:
        """Check if ticket carries an SLA exclusion."""
        return bool(self.exclusion_cause and self.exclusion_cause.strip())

    def mark_arrived(self, at: datetime) -> None:
        """Record crew arrival."""
        if self.status != TicketStatus.ASSIGNMENT:
            raise ValueError('Only assigned tickets can register an arrival')

        self.status = TicketStatus.ARRIVAL
        if self.arrived_at is None:
            self.arrived_at = at
        self.update_timestamp(at)

    def mark_neutralized(self, at: datetime) -> None:
        """Record fault neutralization."""
        if self.status != TicketStatus.ARRIVAL:
            raise ValueError('Only tickets with a registered arrival can be neutralized')

        self.status = TicketStatus.NEUTRALIZED
        if self.neutralized_at is None:
            self.neutralized_at = at
        self.update_timestamp(at)


class EvidenceBundle(BaseEntity):
    """Per-ticket container of submitted evidence."""

    ticket_id: str = Field(..., alias="ticketId", description="Owning ticket ID")
    valid: bool = Field(default=False, description="Overall validity verdict")
    validated_at: Optional[datetime] = Field(None, alias="validatedAt", description="Validation timestamp")
    validator_user_id: Optional[str] = Field(None, alias="validatorUserId", description="User who validated")

    def mark_validated(self, validator_user_id: str, at: datetime) -> None:
        """Mark bundle as valid."""
        self.valid = True
        self.validator_user_id = validator_user_id
        self.validated_at = at
        self.update_timestamp(at)


class ExifData(BaseModel):
    """Capture metadata extracted from a photo."""

    model_config = ConfigDict(extra='allow')

    timestamp: Optional[datetime] = Field(None, description="Capture timestamp")
    gps: Optional[GeoPoint] = Field(None, description="GPS position recorded by the camera")


class ChecklistData(BaseModel):
    """Completed-intervention checklist."""

    model_config = ConfigDict(populate_by_name=True)

    failure_type: str = Field(default="", alias="tipo_falla", description="Type of failure found")
    action_taken: str = Field(default="", alias="accion_realizada", description="Corrective action performed")
    parts_used: List[str] = Field(default_factory=list, alias="repuestos_usados", description="Spare parts used")
    post_tests: str = Field(default="", alias="pruebas_post", description="Post-intervention test result")
    notes: str = Field(default="", alias="observaciones", description="Free-text notes")


class EvidenceItem(BaseEntity):
    """Single piece of evidence belonging to a bundle."""

    bundle_id: str = Field(..., alias="bundleId", description="Owning bundle ID")
    type: EvidenceType = Field(..., description="Evidence type")
    url: str = Field(default="", description="Content reference")
    exif: Optional[ExifData] = Field(None, description="Photo capture metadata")
    geo: Optional[GeoPoint] = Field(None, description="Coordinate where the evidence was captured")
    checklist: Optional[ChecklistData] = Field(None, description="Checklist payload")
    hash: str = Field(default="", description="Content hash for integrity checks")


class HSEPermit(BaseEntity):
    """Safety permit requested for a hazardous intervention."""

    ticket_id: str = Field(..., alias="ticketId", description="Ticket the permit belongs to")
    type: HSEPermitType = Field(..., description="Hazard category")
    status: HSEPermitStatus = Field(default=HSEPermitStatus.PENDING, description="Approval status")
    issued_at: Optional[datetime] = Field(None, alias="issuedAt", description="Issue timestamp")
    approved_at: Optional[datetime] = Field(None, alias="approvedAt", description="Approval timestamp")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Permit form data")

    def is_approved(self) -> bool:
        """Check if permit is approved."""
        return self.status == HSEPermitStatus.APPROVED
