"""In-memory TTL cache.

Keys are a small fixed set of logical resource names ("tmd", "usgs",
"combined"), so entries are never evicted by size. Expired entries are
dropped lazily on the next lookup.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and when it was stored.

    Attributes:
        data: Cached value
        stored_at: Clock reading (seconds) at store time
    """
    data: Any
    stored_at: float


class TTLCache:
    """Key/value store whose entries expire a fixed time after being set."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Entry lifetime
            clock: Returns the current time in seconds
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None

        return entry.data

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        self._entries[key] = CacheEntry(data=value, stored_at=self._clock())

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
