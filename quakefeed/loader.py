"""Earthquake data loader - the service object callers talk to.

Owns the TTL cache, the in-flight registry, both source fetchers and the
aggregator. The client profile is chosen once, at construction.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime

from quakefeed.aggregator import Aggregator
from quakefeed.cache import TTLCache
from quakefeed.core.config import ClientProfile, LoaderConfig
from quakefeed.core.earthquake import EarthquakeRecord
from quakefeed.core.samples import sample_records
from quakefeed.inflight import InFlightRegistry
from quakefeed.shell.relay_client import RelayClient
from quakefeed.sources import build_fetchers, utc_now


logger = logging.getLogger(__name__)


SOURCES = ("tmd", "usgs", "combined")

DEFAULT_VIEWPORT_WIDTH = 1024

DisplayCallback = Callable[[list[EarthquakeRecord]], None]


def normalize_source(source: str | None) -> str:
    """Map a requested source name to a known one; anything else is combined."""
    if source is None:
        return "combined"
    source = source.strip().lower()
    return source if source in SOURCES else "combined"


class EarthquakeDataLoader:
    """Loads earthquake records with caching and request deduplication.

    This class wires together:
    - TTL cache (shared by every source and the combined result)
    - In-flight registry (one pending load per source name)
    - TMD and USGS source fetchers
    - Aggregator (combined loads)
    """

    def __init__(
        self,
        config: LoaderConfig | None = None,
        viewport_width: int = DEFAULT_VIEWPORT_WIDTH,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
        relay_factory: Callable[[], RelayClient] | None = None,
    ) -> None:
        """Initialize loader.

        Args:
            config: Loader configuration (defaults if not provided)
            viewport_width: Client viewport width, selects the profile
            clock: Monotonic clock for cache expiry, in seconds
            now: Wall clock for sample timestamps
            relay_factory: Builds the relay client for each source
        """
        self.config = config or LoaderConfig()
        self.profile: ClientProfile = self.config.profile_for(viewport_width)
        self.settings = self.config.settings_for(self.profile)
        self._now = now

        self.cache = TTLCache(self.config.ttl_ms / 1000, clock=clock)
        self.registry = InFlightRegistry()
        self.fetchers = build_fetchers(
            self.config,
            self.profile,
            self.cache,
            now=now,
            relay_factory=relay_factory,
        )
        self.aggregator = Aggregator(
            self.config,
            self.settings,
            self.fetchers,
            self.cache,
            now=now,
        )

        logger.info("Data loader ready (%s profile)", self.profile.value)

    @property
    def is_constrained(self) -> bool:
        """Returns True for constrained (mobile) clients."""
        return self.profile is ClientProfile.CONSTRAINED

    def sample_data(self) -> list[EarthquakeRecord]:
        """The sample dataset, timestamped now."""
        return sample_records(self._now())

    async def _load(self, source: str) -> list[EarthquakeRecord]:
        if source == "combined":
            return await self.aggregator.load_combined()
        return await self.fetchers[source].fetch()

    async def load_data(
        self,
        source: str = "combined",
        display: DisplayCallback | None = None,
        show_on_map: DisplayCallback | None = None,
    ) -> list[EarthquakeRecord]:
        """Load records for a source.

        The display callback first receives the sample dataset as a
        placeholder, then the loaded records. The map callback only
        receives the loaded records. Concurrent calls for the same source
        share one load.

        Args:
            source: "tmd", "usgs" or "combined" (anything else is combined)
            display: Renders a record list (optional)
            show_on_map: Places map markers for a record list (optional)

        Returns:
            Loaded records; the sample dataset if loading failed
        """
        source = normalize_source(source)

        if display is not None:
            display(self.sample_data())

        try:
            records = await self.registry.run(f"loading_{source}", lambda: self._load(source))
        except Exception:
            logger.exception("Data loading failed for %s, using sample data", source)
            records = self.sample_data()

        if display is not None:
            display(records)
        if show_on_map is not None:
            show_on_map(records)

        return records

    async def preload(self) -> None:
        """Warm the cache.

        Constrained clients only load the combined list; standard clients
        load every source concurrently.
        """
        sources = ("combined",) if self.is_constrained else SOURCES
        results = await asyncio.gather(
            *(self.load_data(source) for source in sources),
            return_exceptions=True,
        )
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.warning("Preload of %s failed: %s", source, result)

    def clear_cache(self) -> None:
        """Drop every cached result and forget in-flight loads."""
        self.cache.clear()
        self.registry.clear()
        logger.info("Cache cleared")
