"""Exception hierarchy for quakefeed.

None of these reach the display layer: source fetchers and the aggregator
catch them and fall back to sample data.
"""


class QuakeFeedError(Exception):
    """Base exception for all quakefeed errors."""


class ConfigError(QuakeFeedError):
    """Invalid configuration file content."""


class ProxyExhaustedError(QuakeFeedError):
    """Every relay endpoint failed for one upstream resource."""

    def __init__(
        self,
        target_url: str,
        failures: list[tuple[str, str]] | None = None,
    ) -> None:
        self.target_url = target_url
        self.failures = failures or []
        detail = "; ".join(f"{name}: {reason}" for name, reason in self.failures)
        message = f"All relays failed for {target_url}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class FeedParseError(QuakeFeedError):
    """Upstream payload did not have the expected shape."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")


class SourceTimeoutError(QuakeFeedError):
    """A source fetch exceeded its time budget."""

    def __init__(self, source: str, timeout_ms: int) -> None:
        self.source = source
        self.timeout_ms = timeout_ms
        super().__init__(f"{source} fetch timed out after {timeout_ms} ms")


class AggregationError(QuakeFeedError):
    """Merging the per-source results failed."""
