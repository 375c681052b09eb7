"""Static sample dataset - Pure functions.

Shown immediately while a load is in flight, and returned whenever live
data cannot be obtained.
"""

from datetime import datetime, timedelta

from quakefeed.core.earthquake import EarthquakeRecord, Source, filter_by_source


def sample_records(now: datetime) -> list[EarthquakeRecord]:
    """Build the sample dataset relative to the current time.

    Pure function.

    Args:
        now: Current UTC time

    Returns:
        Three records, newest first
    """
    return [
        EarthquakeRecord(
            location="ประเทศเมียนมา",
            magnitude=3.8,
            depth_km=10.0,
            occurred_at=now,
            latitude=19.991,
            longitude=95.874,
            source=Source.TMD,
        ),
        EarthquakeRecord(
            location="ประเทศอินโดนีเซีย",
            magnitude=4.2,
            depth_km=25.5,
            occurred_at=now - timedelta(hours=1),
            latitude=-6.2088,
            longitude=106.8456,
            source=Source.TMD,
        ),
        EarthquakeRecord(
            location="ประเทศฟิลิปปินส์",
            magnitude=3.9,
            depth_km=15.2,
            occurred_at=now - timedelta(hours=2),
            latitude=14.5995,
            longitude=120.9842,
            source=Source.USGS,
        ),
    ]


def sample_records_for(source: Source, now: datetime) -> list[EarthquakeRecord]:
    """Sample records tagged with one source.

    Pure function.
    """
    return filter_by_source(sample_records(now), source)
