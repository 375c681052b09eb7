"""Earthquake record model and list helpers - Pure functions.

Both upstream feeds are normalized into EarthquakeRecord. The helpers here
implement the ordering, magnitude floor and truncation shared by every stage.
All functions are pure with no side effects.
"""

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


# Records with no resolvable time sort as if they happened at the epoch
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Source(str, enum.Enum):
    """Upstream feed a record came from."""
    TMD = "TMD"
    USGS = "USGS"


@dataclass(frozen=True)
class EarthquakeRecord:
    """Immutable normalized earthquake record.

    Attributes:
        location: Localized display name, never empty
        magnitude: Magnitude, None when the upstream omitted it
        depth_km: Depth in kilometers, None when unknown
        occurred_at: Event time (UTC-aware), None when unresolvable
        latitude: Epicenter latitude, None hides the record from maps
        longitude: Epicenter longitude
        source: Feed the record came from
    """
    location: str
    magnitude: float | None
    depth_km: float | None
    occurred_at: datetime | None
    latitude: float | None
    longitude: float | None
    source: Source

    @property
    def has_coordinates(self) -> bool:
        """Return True if the record can be placed on a map."""
        return self.latitude is not None and self.longitude is not None

    @property
    def sort_time(self) -> datetime:
        """Event time used for ordering; unknown times count as the epoch."""
        return self.occurred_at or EPOCH

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "location": self.location,
            "magnitude": self.magnitude,
            "depth_km": self.depth_km,
            "occurred_at": self.occurred_at.isoformat() if self.occurred_at else None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "source": self.source.value,
        }


def to_float(value: Any) -> float | None:
    """Coerce a raw upstream value to a finite float.

    Pure function.

    Args:
        value: Number or numeric string

    Returns:
        The float, or None for missing, boolean or non-numeric input
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if math.isnan(number) or math.isinf(number):
        return None

    return number


def above_magnitude_floor(record: EarthquakeRecord, floor: float) -> bool:
    """Check if a record's magnitude is strictly above the floor.

    Pure function. Unknown magnitudes never pass.
    """
    return record.magnitude is not None and record.magnitude > floor


def filter_by_magnitude_floor(
    records: list[EarthquakeRecord],
    floor: float,
) -> list[EarthquakeRecord]:
    """Keep only records with a known magnitude strictly above the floor.

    Pure function.

    Args:
        records: Records to filter
        floor: Exclusive magnitude floor

    Returns:
        Filtered list, original order preserved
    """
    return [r for r in records if above_magnitude_floor(r, floor)]


def sort_newest_first(records: list[EarthquakeRecord]) -> list[EarthquakeRecord]:
    """Sort records by event time, newest first.

    Pure function. The sort is stable, so records with equal times keep
    their incoming order.
    """
    return sorted(records, key=lambda r: r.sort_time, reverse=True)


def filter_by_source(
    records: list[EarthquakeRecord],
    source: Source,
) -> list[EarthquakeRecord]:
    """Keep only records from one source.

    Pure function.
    """
    return [r for r in records if r.source is source]


def merge_records(
    *record_lists: list[EarthquakeRecord],
    floor: float,
    limit: int,
) -> list[EarthquakeRecord]:
    """Merge per-source lists into one display list.

    Pure function.

    Applies the magnitude floor, orders newest first (ties keep fetch
    order) and truncates to the limit.

    Args:
        record_lists: Lists in source fetch order
        floor: Exclusive magnitude floor
        limit: Maximum number of records returned

    Returns:
        Merged records
    """
    merged: list[EarthquakeRecord] = []
    for records in record_lists:
        merged.extend(records)

    merged = filter_by_magnitude_floor(merged, floor)
    return sort_newest_first(merged)[:limit]
