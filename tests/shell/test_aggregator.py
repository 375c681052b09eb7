"""Tests for the Aggregator module.

Uses fake fetchers to test merging, deadlines and fallback.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from quakefeed.aggregator import COMBINED_CACHE_KEY, AggregationResult, Aggregator
from quakefeed.cache import TTLCache
from quakefeed.core.config import DESKTOP_SETTINGS, LoaderConfig
from quakefeed.core.earthquake import EarthquakeRecord, Source
from quakefeed.core.samples import sample_records
from quakefeed.sources import SourceResult


NOW = datetime(2025, 3, 28, 9, 0, tzinfo=timezone.utc)

SETTINGS = replace(
    DESKTOP_SETTINGS,
    tmd_combined_timeout_ms=50,
    usgs_combined_timeout_ms=50,
    max_records=3,
)


def record(minutes_ago: int, magnitude: float | None = 4.0, source=Source.TMD) -> EarthquakeRecord:
    return EarthquakeRecord(
        location="ประเทศเมียนมา",
        magnitude=magnitude,
        depth_km=10.0,
        occurred_at=NOW - timedelta(minutes=minutes_ago),
        latitude=20.0,
        longitude=96.0,
        source=source,
    )


class FakeFetcher:
    """Returns a canned SourceResult after an optional delay."""

    def __init__(self, records=None, live=True, delay=0.0, error=None):
        self.records = records or []
        self.live = live
        self.delay = delay
        self.error = error
        self.calls = 0

    async def fetch_result(self) -> SourceResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SourceResult(records=self.records, live=self.live)


@pytest.fixture
def cache():
    return TTLCache(300)


def make_aggregator(tmd, usgs, cache, settings=SETTINGS):
    return Aggregator(
        LoaderConfig(),
        settings,
        {"tmd": tmd, "usgs": usgs},
        cache,
        now=lambda: NOW,
    )


def load(aggregator) -> AggregationResult:
    return asyncio.run(aggregator.load_combined_result())


class TestLoadCombined:
    """Tests for combined loads."""

    def test_merges_sorted_and_truncated(self, cache):
        tmd = FakeFetcher([record(30), record(90)])
        usgs = FakeFetcher([record(10, source=Source.USGS), record(60, source=Source.USGS)])

        result = load(make_aggregator(tmd, usgs, cache))

        assert [r.occurred_at for r in result.records] == [
            NOW - timedelta(minutes=10),
            NOW - timedelta(minutes=30),
            NOW - timedelta(minutes=60),
        ]
        assert result.live_sources == ["tmd", "usgs"]
        assert result.fallback is False

    def test_drops_records_at_or_below_floor(self, cache):
        tmd = FakeFetcher([record(5, magnitude=3.5), record(6, magnitude=None), record(7, magnitude=3.6)])

        result = load(make_aggregator(tmd, FakeFetcher([]), cache))

        assert [r.magnitude for r in result.records] == [3.6]

    def test_caches_combined_result(self, cache):
        tmd = FakeFetcher([record(30)])
        usgs = FakeFetcher([record(10, source=Source.USGS)])
        aggregator = make_aggregator(tmd, usgs, cache)

        first = load(aggregator)
        second = load(aggregator)

        assert second.from_cache is True
        assert second.records == first.records
        assert tmd.calls == 1
        assert usgs.calls == 1
        assert cache.get(COMBINED_CACHE_KEY) == first.records

    def test_slow_source_is_dropped(self, cache):
        tmd = FakeFetcher([record(30)])
        usgs = FakeFetcher([record(10, source=Source.USGS)], delay=1.0)

        result = load(make_aggregator(tmd, usgs, cache))

        assert [r.source for r in result.records] == [Source.TMD]
        assert result.failed_sources == ["usgs"]

    def test_raising_source_is_dropped(self, cache):
        tmd = FakeFetcher(error=RuntimeError("boom"))
        usgs = FakeFetcher([record(10, source=Source.USGS)])

        result = load(make_aggregator(tmd, usgs, cache))

        assert [r.source for r in result.records] == [Source.USGS]
        assert result.failed_sources == ["tmd"]

    def test_fallback_source_contributes_nothing(self, cache):
        tmd = FakeFetcher([record(30)])
        usgs = FakeFetcher(sample_records(NOW)[2:], live=False)

        result = load(make_aggregator(tmd, usgs, cache))

        assert result.records == [record(30)]
        assert result.failed_sources == ["usgs"]

    def test_live_but_empty_sources_give_empty_list(self, cache):
        result = load(make_aggregator(FakeFetcher([]), FakeFetcher([]), cache))

        assert result.records == []
        assert result.fallback is False
        assert cache.get(COMBINED_CACHE_KEY) == []

    def test_all_sources_failing_returns_samples_uncached(self, cache):
        tmd = FakeFetcher(delay=1.0)
        usgs = FakeFetcher(error=RuntimeError("boom"))

        result = load(make_aggregator(tmd, usgs, cache))

        assert result.records == sample_records(NOW)
        assert result.fallback is True
        assert result.failed_sources == ["tmd", "usgs"]
        assert cache.get(COMBINED_CACHE_KEY) is None

    def test_load_combined_returns_records(self, cache):
        tmd = FakeFetcher([record(30)])

        records = asyncio.run(make_aggregator(tmd, FakeFetcher([]), cache).load_combined())

        assert records == [record(30)]


class TestAggregationResult:
    def test_summary_lists_sources(self):
        result = AggregationResult(records=[], live_sources=["tmd"], failed_sources=["usgs"])

        assert result.summary == "0 earthquakes, live: tmd, failed: usgs"

    def test_cached_summary(self):
        result = AggregationResult(records=[record(1)], from_cache=True)

        assert result.summary == "1 earthquakes from cache"
        assert result.fallback is False
