"""Unit tests for TMD agency feed parsing.

Pure function tests - no mocks needed.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest

from quakefeed.core.agency_feed import (
    AgencyFeedOptions,
    extract_field,
    parse_agency_feed,
    parse_item,
)
from quakefeed.core.earthquake import Source
from quakefeed.core.locations import HOME_COUNTRY_LABEL
from quakefeed.exceptions import FeedParseError


def make_feed(*items: str) -> str:
    """Wrap item XML in a TMD-style RSS document."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<rss version="2.0"'
        ' xmlns:geo="http://www.w3.org/2003/01/geo/wgs84_pos#"'
        ' xmlns:georss="http://www.georss.org/georss"'
        ' xmlns:tmd="http://earthquake.tmd.go.th/">\n'
        "<channel><title>TMD Earthquake Report</title>\n"
        + "\n".join(items)
        + "\n</channel></rss>"
    )


MYANMAR_ITEM = """<item>
<title>ประเทศเมียนมา (Myanmar)</title>
<geo:lat>21.682</geo:lat>
<geo:long>95.975</geo:long>
<tmd:depth>10</tmd:depth>
<tmd:magnitude>4.6</tmd:magnitude>
<tmd:time>2025-03-28 13:20:52 UTC+07:00</tmd:time>
<pubDate>Fri, 28 Mar 2025 06:30:00 +0000</pubDate>
</item>"""

CHIANG_MAI_ITEM = """<item>
<title>ต.กื้ดช้าง อ.แม่แตง จ.เชียงใหม่ (Chiang Mai)</title>
<geo:lat>19.232</geo:lat>
<geo:long>98.822</geo:long>
<tmd:depth>3</tmd:depth>
<tmd:magnitude>3.6</tmd:magnitude>
<tmd:time>2025-03-28 15:00:00 UTC+07:00</tmd:time>
</item>"""

WEAK_ITEM = """<item>
<title>ประเทศลาว (Laos)</title>
<tmd:magnitude>2.1</tmd:magnitude>
<tmd:time>2025-03-28 16:00:00 UTC+07:00</tmd:time>
</item>"""

NO_MAGNITUDE_ITEM = """<item>
<title>Northern Sumatra, Indonesia</title>
<pubDate>Fri, 28 Mar 2025 10:00:00 +0000</pubDate>
</item>"""


def item_element(xml: str) -> ET.Element:
    return ET.fromstring(make_feed(xml).encode("utf-8")).find(".//item")


class TestExtractField:
    """Tests for the ordered extractor table."""

    def test_namespaced_fields(self):
        item = item_element(MYANMAR_ITEM)
        assert extract_field(item, "magnitude") == "4.6"
        assert extract_field(item, "latitude") == "21.682"

    def test_unprefixed_alternate_spellings(self):
        item = item_element(
            "<item><title>x</title><mag>5.1</mag><lat>1.5</lat><lon>99.0</lon></item>"
        )
        assert extract_field(item, "magnitude") == "5.1"
        assert extract_field(item, "latitude") == "1.5"
        assert extract_field(item, "longitude") == "99.0"

    def test_time_prefers_dedicated_field_over_pub_date(self):
        item = item_element(MYANMAR_ITEM)
        assert extract_field(item, "time") == "2025-03-28 13:20:52 UTC+07:00"

    def test_time_falls_back_to_pub_date(self):
        item = item_element(NO_MAGNITUDE_ITEM)
        assert extract_field(item, "time") == "Fri, 28 Mar 2025 10:00:00 +0000"

    def test_georss_point_fallback(self):
        item = item_element(
            "<item><title>x</title><georss:point>18.5 98.9</georss:point></item>"
        )
        assert extract_field(item, "latitude") == "18.5"
        assert extract_field(item, "longitude") == "98.9"

    def test_missing_field(self):
        item = item_element("<item><title>x</title><tmd:depth>  </tmd:depth></item>")
        assert extract_field(item, "depth") is None
        assert extract_field(item, "magnitude") is None


class TestParseItem:
    """Tests for parse_item()."""

    def test_parses_full_item(self):
        record = parse_item(item_element(MYANMAR_ITEM))

        assert record.location == "ประเทศเมียนมา"
        assert record.magnitude == 4.6
        assert record.depth_km == 10.0
        assert record.latitude == 21.682
        assert record.longitude == 95.975
        assert record.occurred_at == datetime(2025, 3, 28, 6, 20, 52, tzinfo=timezone.utc)
        assert record.source is Source.TMD

    def test_domestic_item_gets_home_prefix(self):
        record = parse_item(item_element(CHIANG_MAI_ITEM))
        assert record.location.startswith(f"{HOME_COUNTRY_LABEL} - ")

    def test_missing_values_are_none(self):
        record = parse_item(item_element(NO_MAGNITUDE_ITEM))

        assert record.magnitude is None
        assert record.depth_km is None
        assert record.has_coordinates is False
        assert record.location == "ประเทศอินโดนีเซีย"

    def test_bad_time_is_none(self):
        record = parse_item(item_element(
            "<item><title>x</title><tmd:time>whenever</tmd:time></item>"
        ))
        assert record.occurred_at is None


class TestParseAgencyFeed:
    """Tests for parse_agency_feed()."""

    def test_filters_and_sorts(self):
        feed = make_feed(MYANMAR_ITEM, WEAK_ITEM, CHIANG_MAI_ITEM, NO_MAGNITUDE_ITEM)

        records = parse_agency_feed(feed)

        # Weak and magnitude-less items are dropped, newest first
        assert [r.magnitude for r in records] == [3.6, 4.6]

    def test_unknown_magnitude_is_excluded(self):
        records = parse_agency_feed(make_feed(NO_MAGNITUDE_ITEM))
        assert records == []

    def test_reads_only_first_items(self):
        feed = make_feed(WEAK_ITEM, MYANMAR_ITEM, CHIANG_MAI_ITEM)

        records = parse_agency_feed(feed, AgencyFeedOptions(max_items=2))

        assert len(records) == 1
        assert records[0].magnitude == 4.6

    def test_custom_floor(self):
        feed = make_feed(MYANMAR_ITEM, CHIANG_MAI_ITEM)

        records = parse_agency_feed(feed, AgencyFeedOptions(magnitude_floor=4.0))

        assert [r.magnitude for r in records] == [4.6]

    def test_accepts_bytes(self):
        records = parse_agency_feed(make_feed(MYANMAR_ITEM).encode("utf-8"))
        assert len(records) == 1

    def test_invalid_xml_raises(self):
        with pytest.raises(FeedParseError, match="Invalid XML"):
            parse_agency_feed("<rss><channel><item>")

    def test_feed_without_items_raises(self):
        with pytest.raises(FeedParseError, match="No earthquake items"):
            parse_agency_feed(make_feed())
