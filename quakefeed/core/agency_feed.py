"""TMD agency feed parsing - Pure functions.

This module parses the Thai Meteorological Department RSS document into
EarthquakeRecord objects. The feed's element names are not stable, so each
field is read through an ordered table of extractors; the first one that
yields text wins.
"""

import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass

from quakefeed.core.earthquake import (
    EarthquakeRecord,
    Source,
    filter_by_magnitude_floor,
    sort_newest_first,
    to_float,
)
from quakefeed.core.locations import localize_agency_title
from quakefeed.core.timestamps import parse_feed_time
from quakefeed.exceptions import FeedParseError


Extractor = Callable[[ET.Element], str | None]


def _child_text(path: str) -> Extractor:
    """Extractor returning the stripped text of the first matching child."""
    def extract(item: ET.Element) -> str | None:
        element = item.find(path)
        if element is None or element.text is None:
            return None
        text = element.text.strip()
        return text or None
    return extract


def _georss_part(index: int) -> Extractor:
    """Extractor for one half of a georss "lat lon" point."""
    def extract(item: ET.Element) -> str | None:
        point = _child_text("{*}point")(item)
        if point is None:
            return None
        parts = point.split()
        if len(parts) != 2:
            return None
        return parts[index]
    return extract


# "{*}name" matches the element in any namespace or none, so
# "{*}magnitude" covers both <tmd:magnitude> and <magnitude>.
FIELD_EXTRACTORS: dict[str, tuple[Extractor, ...]] = {
    "title": (
        _child_text("{*}title"),
    ),
    "latitude": (
        _child_text("{*}lat"),
        _child_text("{*}latitude"),
        _georss_part(0),
    ),
    "longitude": (
        _child_text("{*}long"),
        _child_text("{*}lon"),
        _child_text("{*}longitude"),
        _georss_part(1),
    ),
    "depth": (
        _child_text("{*}depth"),
    ),
    "magnitude": (
        _child_text("{*}magnitude"),
        _child_text("{*}mag"),
    ),
    "time": (
        _child_text("{*}time"),
        _child_text("{*}datetime"),
        _child_text("{*}pubDate"),
    ),
}


def extract_field(item: ET.Element, name: str) -> str | None:
    """Read one field from a feed item using its extractor table.

    Pure function.

    Args:
        item: An <item> element
        name: Key in FIELD_EXTRACTORS

    Returns:
        First non-empty text found, or None
    """
    for extractor in FIELD_EXTRACTORS[name]:
        value = extractor(item)
        if value is not None:
            return value
    return None


def parse_item(item: ET.Element) -> EarthquakeRecord:
    """Parse a single feed item into an EarthquakeRecord.

    Pure function. Missing or malformed fields become None; the item
    is never rejected here.

    Args:
        item: An <item> element

    Returns:
        EarthquakeRecord tagged as TMD
    """
    return EarthquakeRecord(
        location=localize_agency_title(extract_field(item, "title")),
        magnitude=to_float(extract_field(item, "magnitude")),
        depth_km=to_float(extract_field(item, "depth")),
        occurred_at=parse_feed_time(extract_field(item, "time")),
        latitude=to_float(extract_field(item, "latitude")),
        longitude=to_float(extract_field(item, "longitude")),
        source=Source.TMD,
    )


@dataclass(frozen=True)
class AgencyFeedOptions:
    """Options for parsing the agency feed.

    Attributes:
        max_items: Only the first N items of the document are read
        magnitude_floor: Exclusive magnitude floor
    """
    max_items: int = 12
    magnitude_floor: float = 3.5


def parse_agency_feed(
    document: str | bytes,
    options: AgencyFeedOptions | None = None,
) -> list[EarthquakeRecord]:
    """Parse the TMD RSS document into display records.

    Pure function.

    Reads the first max_items items, drops records without a magnitude
    above the floor, and orders the rest newest first.

    Args:
        document: Raw RSS text
        options: Parsing options

    Returns:
        Records sorted by time, newest first

    Raises:
        FeedParseError: If the document is not XML or has no items
    """
    options = options or AgencyFeedOptions()

    if isinstance(document, str):
        document = document.encode("utf-8")

    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise FeedParseError("TMD", f"Invalid XML: {e}") from e

    items = root.findall(".//{*}item")
    if not items:
        raise FeedParseError("TMD", "No earthquake items in feed")

    records = [parse_item(item) for item in items[:options.max_items]]
    records = filter_by_magnitude_floor(records, options.magnitude_floor)
    return sort_newest_first(records)
