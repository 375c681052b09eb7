"""Admission rules for the global feed - Pure functions.

The USGS feed is worldwide. A feature is admitted when its place names a
priority country, or when it is strong enough for its distance from the
reference point.
"""

from dataclasses import dataclass

from quakefeed.core.geo import ReferencePoint, THAILAND, distance_from


DEFAULT_PRIORITY_COUNTRIES: tuple[str, ...] = (
    "thailand",
    "myanmar",
    "indonesia",
    "philippines",
    "malaysia",
    "laos",
    "cambodia",
    "vietnam",
    "singapore",
)


@dataclass(frozen=True)
class AdmissionTier:
    """A magnitude/distance threshold pair.

    Attributes:
        min_magnitude: Magnitude threshold
        max_distance_km: Admit only within this distance (inclusive)
        inclusive: If True the threshold is ">=", otherwise ">"
    """
    min_magnitude: float
    max_distance_km: float
    inclusive: bool = True

    def matches(self, magnitude: float, distance_km: float) -> bool:
        """Check if a magnitude/distance pair falls within this tier."""
        if distance_km > self.max_distance_km:
            return False
        if self.inclusive:
            return magnitude >= self.min_magnitude
        return magnitude > self.min_magnitude


DEFAULT_TIERS: tuple[AdmissionTier, ...] = (
    AdmissionTier(min_magnitude=6.0, max_distance_km=3000),
    AdmissionTier(min_magnitude=5.0, max_distance_km=2000),
    AdmissionTier(min_magnitude=3.5, max_distance_km=1000, inclusive=False),
)


@dataclass(frozen=True)
class AdmissionPolicy:
    """Everything needed to decide whether a global feature is shown.

    Attributes:
        magnitude_floor: Exclusive floor applied before any other rule
        priority_countries: Lower-case names admitted at any distance
        tiers: Magnitude/distance tiers for everything else
        reference: Point distances are measured from
    """
    magnitude_floor: float = 3.5
    priority_countries: tuple[str, ...] = DEFAULT_PRIORITY_COUNTRIES
    tiers: tuple[AdmissionTier, ...] = DEFAULT_TIERS
    reference: ReferencePoint = THAILAND


def is_priority_place(place: str | None, countries: tuple[str, ...]) -> bool:
    """Check if a place string mentions any priority country.

    Pure function. Case-insensitive substring match.
    """
    if not place:
        return False
    lowered = place.lower()
    return any(country.lower() in lowered for country in countries)


def admit(
    magnitude: float,
    latitude: float,
    longitude: float,
    place: str | None,
    policy: AdmissionPolicy,
) -> bool:
    """Decide whether a global feed feature is admitted.

    Pure function.

    Rules, first match wins:
    1. Magnitude at or below the floor is never admitted.
    2. A place naming a priority country is admitted at any distance.
    3. Otherwise any tier matching the approximate distance admits it.

    Args:
        magnitude: Feature magnitude
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        place: USGS place string
        policy: Admission policy

    Returns:
        True if the feature should be shown
    """
    if magnitude <= policy.magnitude_floor:
        return False

    if is_priority_place(place, policy.priority_countries):
        return True

    distance = distance_from(policy.reference, latitude, longitude)
    return any(tier.matches(magnitude, distance) for tier in policy.tiers)
