# SPDX-License-Identifier: Apache-2.0

"""
Great-circle distance and geofence membership.
"""

import math

from ..models.base import GeoPoint
from ..models.entities import Site

EARTH_RADIUS_METERS = 6371000.0

# Arrival is checked against the tighter radius; evidence photos get more slack.
GEOFENCE_RADIUS_METERS = 200.0
EVIDENCE_GEOFENCE_RADIUS_METERS = 300.0


def distance_meters(p1: GeoPoint, p2: GeoPoint) -> float:
    """
    Haversine distance between two coordinates on a spherical Earth.
    
    Args:
        p1: First point in decimal degrees
        p2: Second point in decimal degrees
        
    Returns:
        Distance in meters (non-negative, symmetric)
    """
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    d_phi = math.radians(p2.lat - p1.lat)
    d_lambda = math.radians(p2.lng - p1.lng)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push antipodal points just past 1.
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def is_inside_geofence(
    point: GeoPoint,
    site: Site,
    radius_meters: float = GEOFENCE_RADIUS_METERS
) -> bool:
    """Check if a point lies within ``radius_meters`` of the site (boundary inclusive)."""
    return distance_meters(point, site.center) <= radius_meters
