"""Aggregator - merges both source fetchers into one display list.

Each source runs under its own outer deadline. A source that misses its
deadline or fails contributes nothing; only when no source produced live
data does the combined result fall back to the full sample dataset.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from quakefeed.cache import TTLCache
from quakefeed.core.config import LoaderConfig, ProfileSettings
from quakefeed.core.earthquake import EarthquakeRecord, merge_records
from quakefeed.core.samples import sample_records
from quakefeed.exceptions import AggregationError
from quakefeed.sources import SourceFetcher, SourceResult, utc_now


logger = logging.getLogger(__name__)


COMBINED_CACHE_KEY = "combined"


@dataclass
class AggregationResult:
    """Result of a combined load.

    Attributes:
        records: Records to display
        live_sources: Sources that contributed live data
        failed_sources: Sources that timed out, failed or fell back
        from_cache: True if served from the combined cache entry
    """
    records: list[EarthquakeRecord]
    live_sources: list[str] = field(default_factory=list)
    failed_sources: list[str] = field(default_factory=list)
    from_cache: bool = False

    @property
    def fallback(self) -> bool:
        """Returns True if no source contributed live data."""
        return not self.from_cache and not self.live_sources

    @property
    def summary(self) -> str:
        """Human-readable summary of the aggregation."""
        if self.from_cache:
            return f"{len(self.records)} earthquakes from cache"
        return (
            f"{len(self.records)} earthquakes, "
            f"live: {', '.join(self.live_sources) or 'none'}, "
            f"failed: {', '.join(self.failed_sources) or 'none'}"
        )


class Aggregator:
    """Runs the source fetchers concurrently and merges their results."""

    def __init__(
        self,
        config: LoaderConfig,
        settings: ProfileSettings,
        fetchers: dict[str, SourceFetcher],
        cache: TTLCache,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize aggregator.

        Args:
            config: Loader configuration
            settings: Settings for the active client profile
            fetchers: Source fetchers keyed by name; merge order follows
                insertion order
            cache: Shared TTL cache
            now: Wall clock for sample timestamps
        """
        self.config = config
        self.settings = settings
        self.fetchers = fetchers
        self.cache = cache
        self._now = now

    def _outer_timeout_ms(self, name: str) -> int:
        if name == "tmd":
            return self.settings.tmd_combined_timeout_ms
        if name == "usgs":
            return self.settings.usgs_combined_timeout_ms
        return max(self.settings.tmd_combined_timeout_ms, self.settings.usgs_combined_timeout_ms)

    async def _race(self, name: str, fetcher: SourceFetcher) -> SourceResult | None:
        """Fetch one source under its outer deadline.

        Returns:
            The source result, or None if the deadline won or the fetch
            raised
        """
        timeout_ms = self._outer_timeout_ms(name)
        try:
            return await asyncio.wait_for(fetcher.fetch_result(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning("%s missed the combined deadline of %d ms", name, timeout_ms)
        except Exception:
            logger.exception("%s fetch raised during combined load", name)
        return None

    def _merge(self, per_source: list[list[EarthquakeRecord]]) -> list[EarthquakeRecord]:
        """Merge, filter, sort and truncate.

        Raises:
            AggregationError: If the records could not be merged
        """
        try:
            return merge_records(
                *per_source,
                floor=self.config.magnitude_floor,
                limit=self.settings.max_records,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise AggregationError(f"Failed to merge earthquake lists: {e}") from e

    async def load_combined_result(self) -> AggregationResult:
        """Run a combined load and report how it went.

        Never raises.
        """
        cached = self.cache.get(COMBINED_CACHE_KEY)
        if cached is not None:
            return AggregationResult(records=cached, from_cache=True)

        names = list(self.fetchers)
        outcomes = await asyncio.gather(
            *(self._race(name, self.fetchers[name]) for name in names)
        )

        live_sources = []
        failed_sources = []
        per_source: list[list[EarthquakeRecord]] = []

        for name, outcome in zip(names, outcomes):
            if outcome is None:
                failed_sources.append(name)
                per_source.append([])
                continue
            if outcome.live:
                live_sources.append(name)
                per_source.append(outcome.records)
            else:
                # Sample fallbacks are not mixed into live results
                failed_sources.append(name)
                per_source.append([])

        if not live_sources:
            logger.warning("No source returned live data, using sample data")
            return AggregationResult(
                records=sample_records(self._now()),
                failed_sources=failed_sources,
            )

        try:
            combined = self._merge(per_source)
        except AggregationError:
            logger.exception("Combined data merge failed, using sample data")
            return AggregationResult(
                records=sample_records(self._now()),
                failed_sources=names,
            )

        self.cache.set(COMBINED_CACHE_KEY, combined)

        result = AggregationResult(
            records=combined,
            live_sources=live_sources,
            failed_sources=failed_sources,
        )
        logger.info("Combined load: %s", result.summary)
        return result

    async def load_combined(self) -> list[EarthquakeRecord]:
        """Load the merged display list."""
        result = await self.load_combined_result()
        return result.records
