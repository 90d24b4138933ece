"""
Great-circle distance on a spherical Earth.

Used by the update gate to measure how far the filtered position moved
since the last accepted estimate.
"""

import math

# Mean Earth radius (m)
EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees
        lon1: Longitude 1 in degrees
        lat2: Latitude 2 in degrees
        lon2: Longitude 2 in degrees

    Returns:
        Distance in meters (0 for identical points)

    Notes:
        - The haversine term is clamped to [0, 1] so rounding near
          antipodal or identical points cannot produce NaN
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (math.sin(d_phi / 2.0) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2)
    a = min(1.0, max(0.0, a))

    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def distance_between(a, b) -> float:
    """Haversine distance between two objects exposing latitude/longitude."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)
