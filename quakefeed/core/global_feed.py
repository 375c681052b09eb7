"""USGS global feed parsing - Pure functions.

This module turns the USGS GeoJSON summary feed into EarthquakeRecord
objects, keeping only events relevant to Thailand (see core.admission).
All functions are pure with no side effects.
"""

import json
from dataclasses import dataclass
from typing import Any

from quakefeed.core.admission import AdmissionPolicy, admit
from quakefeed.core.earthquake import EarthquakeRecord, Source, to_float
from quakefeed.core.locations import localize_global_place
from quakefeed.core.timestamps import parse_epoch_millis
from quakefeed.exceptions import FeedParseError


@dataclass(frozen=True)
class GlobalFeedOptions:
    """Options for parsing the global feed.

    Attributes:
        max_records: Records kept after admission and sorting
        policy: Admission policy
    """
    max_records: int = 10
    policy: AdmissionPolicy = AdmissionPolicy()


def _feature_fields(feature: Any) -> tuple[float, float, float, dict[str, Any]] | None:
    """Pull (magnitude, latitude, longitude, properties) out of a feature.

    Returns None when any of them is missing or not numeric.
    """
    if not isinstance(feature, dict):
        return None

    properties = feature.get("properties")
    geometry = feature.get("geometry")
    if not isinstance(properties, dict) or not isinstance(geometry, dict):
        return None

    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None

    # Strings are not accepted here; USGS always sends JSON numbers
    values = (properties.get("mag"), coords[1], coords[0])
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return None

    magnitude, latitude, longitude = (float(v) for v in values)
    return magnitude, latitude, longitude, properties


def parse_feature(feature: dict[str, Any]) -> EarthquakeRecord:
    """Normalize one admitted feature.

    Pure function. Assumes the feature passed _feature_fields.
    """
    properties = feature["properties"]
    coords = feature["geometry"]["coordinates"]
    depth = to_float(coords[2]) if len(coords) > 2 else None

    return EarthquakeRecord(
        location=localize_global_place(properties.get("place")),
        magnitude=float(properties["mag"]),
        depth_km=depth,
        occurred_at=parse_epoch_millis(properties.get("time")),
        latitude=float(coords[1]),
        longitude=float(coords[0]),
        source=Source.USGS,
    )


def _feature_time(feature: dict[str, Any]) -> float:
    value = to_float(feature["properties"].get("time"))
    return value if value is not None else 0.0


def select_features(
    features: list[Any],
    options: GlobalFeedOptions,
) -> list[dict[str, Any]]:
    """Apply admission rules, order newest first and truncate.

    Pure function.

    Args:
        features: Raw GeoJSON features
        options: Parsing options

    Returns:
        Admitted features, newest first, at most max_records
    """
    admitted = []
    for feature in features:
        fields = _feature_fields(feature)
        if fields is None:
            continue
        magnitude, latitude, longitude, properties = fields
        if admit(magnitude, latitude, longitude, properties.get("place"), options.policy):
            admitted.append(feature)

    admitted.sort(key=_feature_time, reverse=True)
    return admitted[:options.max_records]


def parse_global_feed(
    document: str | bytes | dict[str, Any],
    options: GlobalFeedOptions | None = None,
) -> list[EarthquakeRecord]:
    """Parse the USGS GeoJSON feed into display records.

    Pure function.

    Args:
        document: Raw JSON text or an already-decoded FeatureCollection
        options: Parsing options

    Returns:
        Records sorted by time, newest first

    Raises:
        FeedParseError: If the payload is not a FeatureCollection
    """
    options = options or GlobalFeedOptions()

    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except ValueError as e:
            raise FeedParseError("USGS", f"Invalid JSON: {e}") from e

    if not isinstance(document, dict):
        raise FeedParseError("USGS", "Expected a GeoJSON object")

    features = document.get("features")
    if not isinstance(features, list):
        raise FeedParseError("USGS", "Missing 'features' list")

    return [parse_feature(f) for f in select_features(features, options)]
