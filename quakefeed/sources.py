"""Source fetchers - wire relay I/O, feed parsing and the cache.

One fetcher per upstream. A fetch never raises: any failure is logged and
answered with the sample records for that source.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from quakefeed.cache import TTLCache
from quakefeed.core.agency_feed import AgencyFeedOptions, parse_agency_feed
from quakefeed.core.config import ClientProfile, LoaderConfig, ProfileSettings
from quakefeed.core.earthquake import EarthquakeRecord, Source
from quakefeed.core.global_feed import GlobalFeedOptions, parse_global_feed
from quakefeed.core.samples import sample_records_for
from quakefeed.exceptions import FeedParseError, QuakeFeedError, SourceTimeoutError
from quakefeed.shell.relay_client import RelayClient


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one source fetch.

    Attributes:
        records: Records to display
        live: True if the records came from the upstream (fresh or cached),
            False if they are sample fallbacks
    """
    records: list[EarthquakeRecord]
    live: bool


class SourceFetcher(ABC):
    """Fetches, parses and caches one upstream feed.

    Subclasses name the source and supply the URL, timeout and parser.
    """

    source: Source
    cache_key: str

    def __init__(
        self,
        config: LoaderConfig,
        profile: ClientProfile,
        cache: TTLCache,
        relay_client: RelayClient | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize fetcher.

        Args:
            config: Loader configuration
            profile: Client profile, fixed for the fetcher's lifetime
            cache: Shared TTL cache
            relay_client: Relay client (created if not provided)
            now: Wall clock used to timestamp sample records
        """
        self.config = config
        self.profile = profile
        self.settings: ProfileSettings = config.settings_for(profile)
        self.cache = cache
        self.relay_client = relay_client or RelayClient(relays=config.relays)
        self._now = now

    @property
    @abstractmethod
    def url(self) -> str:
        """Canonical upstream URL."""

    @property
    @abstractmethod
    def timeout_ms(self) -> int:
        """Fetch budget for the active profile."""

    @abstractmethod
    def parse(self, body: str) -> list[EarthquakeRecord]:
        """Turn the upstream body into display records."""

    async def _fetch_live(self) -> list[EarthquakeRecord]:
        """Fetch and parse the upstream within the source's timeout.

        Raises:
            SourceTimeoutError: If the budget elapsed
            ProxyExhaustedError: If every relay failed
            FeedParseError: If the payload could not be parsed
        """
        timeout = self.timeout_ms / 1000
        try:
            body = await asyncio.wait_for(
                self.relay_client.fetch(self.url, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise SourceTimeoutError(self.source.value, self.timeout_ms) from e

        try:
            return self.parse(body)
        except QuakeFeedError:
            raise
        except Exception as e:
            raise FeedParseError(self.source.value, f"Unexpected payload: {e}") from e

    async def fetch_result(self) -> SourceResult:
        """Fetch records, reporting whether they are live or fallback.

        Never raises for upstream failures.
        """
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s", self.cache_key)
            return SourceResult(records=cached, live=True)

        try:
            records = await self._fetch_live()
        except QuakeFeedError as e:
            logger.warning("%s fetch failed, using sample data: %s", self.source.value, e)
            return SourceResult(
                records=sample_records_for(self.source, self._now()),
                live=False,
            )

        logger.info("Fetched %d %s earthquakes", len(records), self.source.value)
        self.cache.set(self.cache_key, records)
        return SourceResult(records=records, live=True)

    async def fetch(self) -> list[EarthquakeRecord]:
        """Fetch records for this source, falling back to sample data."""
        result = await self.fetch_result()
        return result.records


class TMDFetcher(SourceFetcher):
    """Thai Meteorological Department RSS feed."""

    source = Source.TMD
    cache_key = "tmd"

    @property
    def url(self) -> str:
        return self.config.tmd_url

    @property
    def timeout_ms(self) -> int:
        return self.settings.tmd_timeout_ms

    def parse(self, body: str) -> list[EarthquakeRecord]:
        return parse_agency_feed(
            body,
            AgencyFeedOptions(
                max_items=self.settings.max_agency_items,
                magnitude_floor=self.config.magnitude_floor,
            ),
        )


class USGSFetcher(SourceFetcher):
    """USGS all-day GeoJSON summary feed."""

    source = Source.USGS
    cache_key = "usgs"

    @property
    def url(self) -> str:
        return self.config.usgs_url

    @property
    def timeout_ms(self) -> int:
        return self.settings.usgs_timeout_ms

    def parse(self, body: str) -> list[EarthquakeRecord]:
        return parse_global_feed(
            body,
            GlobalFeedOptions(
                max_records=self.settings.max_global_records,
                policy=self.config.admission_policy(),
            ),
        )


FETCHERS: dict[str, type[SourceFetcher]] = {
    "tmd": TMDFetcher,
    "usgs": USGSFetcher,
}


def build_fetchers(
    config: LoaderConfig,
    profile: ClientProfile,
    cache: TTLCache,
    now: Callable[[], datetime] = utc_now,
    relay_factory: Callable[[], RelayClient] | None = None,
) -> dict[str, SourceFetcher]:
    """Create one fetcher per source.

    Args:
        config: Loader configuration
        profile: Client profile
        cache: Shared TTL cache
        now: Wall clock for sample timestamps
        relay_factory: Builds a relay client per fetcher (default:
            RelayClient over the configured relays)

    Returns:
        Fetchers keyed by source name ("tmd", "usgs")
    """
    if relay_factory is None:
        def relay_factory() -> RelayClient:
            return RelayClient(relays=config.relays)

    return {
        name: fetcher_cls(config, profile, cache, relay_client=relay_factory(), now=now)
        for name, fetcher_cls in FETCHERS.items()
    }
