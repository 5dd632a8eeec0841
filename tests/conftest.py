# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import math
import os
import pytest
from datetime import datetime, timedelta
from bson import ObjectId

from fieldops.domain.geodesy import EARTH_RADIUS_METERS
from fieldops.models import (
    ChecklistData, EvidenceBundle, EvidenceItem, ExifData, GeoPoint,
    HSEPermit, Site, Ticket
)
from fieldops.utils.clock import REFERENCE_TIMEZONE

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'

FIXED_NOW = datetime(2024, 11, 7, 10, 30, tzinfo=REFERENCE_TIMEZONE)
SITE_LAT = -12.0464
SITE_LNG = -77.0428


def point_north_of(lat: float, lng: float, meters: float) -> GeoPoint:
    """Point ``meters`` due north of a coordinate."""
    return GeoPoint(lat=lat + math.degrees(meters / EARTH_RADIUS_METERS), lng=lng)


@pytest.fixture
def fixed_now():
    """Pinned current time in the reference timezone."""
    return FIXED_NOW


@pytest.fixture
def site():
    """Metro-zone site in Lima."""
    return Site(
        id=str(ObjectId()),
        code="LIM-001",
        name="Lima Centro Tower",
        lat=SITE_LAT,
        lng=SITE_LNG,
        region="LIMA",
        zone="CENTRO",
        department="LIMA"
    )


@pytest.fixture
def inside_point():
    """Point 100 m from the site."""
    return point_north_of(SITE_LAT, SITE_LNG, 100)


@pytest.fixture
def outside_point():
    """Point 500 m from the site."""
    return point_north_of(SITE_LAT, SITE_LNG, 500)


@pytest.fixture
def make_ticket(site):
    """Factory for tickets attached to the site fixture."""
    def _make(**overrides):
        data = {
            "id": str(ObjectId()),
            "priority": "P1",
            "status": "arrival",
            "site_id": site.id,
            "opened_at": FIXED_NOW - timedelta(hours=3),
            "arrived_at": FIXED_NOW - timedelta(hours=1),
        }
        data.update(overrides)
        return Ticket(**data)
    return _make


@pytest.fixture
def ticket(make_ticket):
    """Ticket at the site that needs no permit."""
    return make_ticket()


@pytest.fixture
def bundle(ticket):
    """Evidence bundle of the ticket fixture."""
    return EvidenceBundle(id=str(ObjectId()), ticket_id=ticket.id)


@pytest.fixture
def complete_checklist():
    """Checklist with every required field filled in."""
    return ChecklistData(
        failure_type="Power outage",
        action_taken="Replaced rectifier module",
        parts_used=["RECT-48V"],
        post_tests="Alarms cleared, traffic restored",
        notes="Site left clean"
    )


@pytest.fixture
def make_item(bundle):
    """Factory for evidence items of the bundle fixture."""
    def _make(evidence_type, **overrides):
        data = {
            "id": str(ObjectId()),
            "bundle_id": bundle.id,
            "type": evidence_type,
            "url": f"evidence/{evidence_type}.jpg",
        }
        data.update(overrides)
        return EvidenceItem(**data)
    return _make


@pytest.fixture
def valid_items(make_item, inside_point, complete_checklist):
    """Before/after photos inside the geofence one minute apart, plus a full checklist."""
    taken_at = FIXED_NOW - timedelta(minutes=30)
    return [
        make_item(
            "photo_before",
            geo=inside_point,
            exif=ExifData(timestamp=taken_at, gps=inside_point)
        ),
        make_item(
            "photo_after",
            geo=inside_point,
            exif=ExifData(timestamp=taken_at + timedelta(minutes=1), gps=inside_point)
        ),
        make_item("checklist", url="", checklist=complete_checklist),
    ]


@pytest.fixture
def approved_permit(ticket):
    """Approved RADIO permit for the ticket fixture."""
    return HSEPermit(
        id=str(ObjectId()),
        ticket_id=ticket.id,
        type="RADIO",
        status="approved",
        issued_at=FIXED_NOW - timedelta(hours=2),
        approved_at=FIXED_NOW - timedelta(hours=1)
    )


@pytest.fixture
def offset_point():
    """Factory for points a given distance due north of the site."""
    def _make(meters):
        return point_north_of(SITE_LAT, SITE_LNG, meters)
    return _make


@pytest.fixture
def make_permit():
    """Factory for HSE permits."""
    def _make(ticket_id, status="approved", permit_type="RADIO"):
        return HSEPermit(
            id=str(ObjectId()),
            ticket_id=ticket_id,
            type=permit_type,
            status=status,
            issued_at=FIXED_NOW - timedelta(hours=2)
        )
    return _make
