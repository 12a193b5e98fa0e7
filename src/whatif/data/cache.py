"""In-process cache for aligned price series.

Entries are keyed by the *requested* ``(ticker, start_date, end_date)`` and hold
immutable :class:`~whatif.types.PriceSeries` snapshots. Every entry expires a
fixed time after it was stored, and the cache holds a bounded number of
entries, evicting the least recently used one under capacity pressure.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable, NamedTuple

from whatif.types import PriceSeries

DEFAULT_MAX_ENTRIES = 300
DEFAULT_TTL_SECONDS = 60 * 60 * 24


class CacheKey(NamedTuple):
    """Requested ticker and window, exactly as the caller supplied them."""

    ticker: str
    start_date: str
    end_date: str


class SeriesCache:
    """Bounded LRU cache with an absolute per-entry expiry.

    :param max_entries: Maximum number of entries held at once.
    :param ttl_seconds: Lifetime of an entry, measured from when it was stored.
    :param clock: Monotonic clock returning seconds; injectable for tests.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[CacheKey, tuple[float, PriceSeries]] = OrderedDict()

    def get(self, key: CacheKey) -> PriceSeries | None:
        """Return the live entry for ``key`` and mark it most recently used.

        :param key: Cache key.
        :returns: Cached series, or None when absent or expired.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, series = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return series

    def set(self, key: CacheKey, series: PriceSeries) -> None:
        """Store ``series`` under ``key``, replacing any previous entry.

        :param key: Cache key.
        :param series: Series snapshot to store.
        """
        self._entries[key] = (self._clock() + self.ttl_seconds, series)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[call-overload]
        return entry is not None and self._clock() < entry[0]

    def __len__(self) -> int:
        return len(self._entries)


class NullSeriesCache(SeriesCache):
    """Cache that never stores anything (caching disabled)."""

    def __init__(self) -> None:
        super().__init__(max_entries=1)

    def get(self, key: CacheKey) -> PriceSeries | None:
        return None

    def set(self, key: CacheKey, series: PriceSeries) -> None:
        return None


__all__ = [
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_TTL_SECONDS",
    "CacheKey",
    "SeriesCache",
    "NullSeriesCache",
]
