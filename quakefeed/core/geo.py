"""Geographic calculations - Pure functions.

Distances here are deliberately approximate: the admission tiers work at
the scale of hundreds to thousands of kilometers, where a flat-plane
estimate is good enough.
"""

import math
from dataclasses import dataclass


# Kilometers per degree of arc, used by the flat-plane estimate
KM_PER_DEGREE = 111.0


@dataclass(frozen=True)
class ReferencePoint:
    """A fixed location distances are measured from.

    Attributes:
        name: Human-readable name
        latitude: Point latitude
        longitude: Point longitude
    """
    name: str
    latitude: float
    longitude: float


# Bangkok, used as the centroid of Thailand
THAILAND = ReferencePoint(name="Thailand", latitude=13.7563, longitude=100.5018)


def approximate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Estimate the distance between two points on a flat plane.

    Pure function.

    Treats latitude and longitude degrees as equal-length axes of
    KM_PER_DEGREE kilometers each.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Approximate distance in kilometers
    """
    delta_lat = lat2 - lat1
    delta_lon = lon2 - lon1
    return math.hypot(delta_lat, delta_lon) * KM_PER_DEGREE


def distance_from(point: ReferencePoint, latitude: float, longitude: float) -> float:
    """Approximate distance from a reference point to a location.

    Pure function.
    """
    return approximate_distance(point.latitude, point.longitude, latitude, longitude)
