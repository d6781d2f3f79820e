"""
Summary cache - memoizes generated table summaries per connection.

Entries live for the lifetime of the process only and are never persisted.
The cache holds at most `max_entries` summaries, evicting the least recently
used one when full, and optionally expires entries after `ttl` seconds.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]  # (connection_id, table_name)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
        }


class SummaryCache:
    """Thread-safe LRU cache of summary strings keyed by (connection_id, table_name)."""

    def __init__(
        self,
        max_entries: int = 256,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of summaries kept
            ttl: Seconds before an entry expires, or None to keep until evicted
            clock: Time source, injectable for tests
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[CacheKey, Tuple[str, float]] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @classmethod
    def from_settings(cls, settings) -> SummaryCache:
        """Create a cache sized by a relmap.config.Settings object."""
        return cls(max_entries=settings.summary_cache_size, ttl=settings.summary_cache_ttl)

    @staticmethod
    def make_key(connection_id: str, table_name: str) -> CacheKey:
        return (str(connection_id), table_name)

    def _expired(self, stored_at: float) -> bool:
        return self.ttl is not None and self._clock() - stored_at >= self.ttl

    def get(self, connection_id: str, table_name: str) -> Optional[str]:
        """Return the cached summary, or None if absent or expired."""
        key = self.make_key(connection_id, table_name)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            summary, stored_at = entry
            if self._expired(stored_at):
                del self._entries[key]
                self._stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return summary

    def set(self, connection_id: str, table_name: str, summary: str) -> None:
        """Store a summary, evicting the least recently used entry if full."""
        key = self.make_key(connection_id, table_name)
        with self._lock:
            self._entries[key] = (summary, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                logger.debug(f"Evicted cached summary for {evicted[1]} (connection {evicted[0]})")

    def get_or_create(
        self,
        connection_id: str,
        table_name: str,
        factory: Callable[[], str],
    ) -> Tuple[str, bool]:
        """
        Return the cached summary or generate and store a new one.

        The factory runs outside the lock, so concurrent misses for the same
        key may both call it; the last result wins.

        Returns:
            (summary, cached) where cached tells whether it came from the cache
        """
        summary = self.get(connection_id, table_name)
        if summary is not None:
            return summary, True

        summary = factory()
        self.set(connection_id, table_name, summary)
        logger.info(f"Summary cached for {table_name} (cache size: {len(self)})")
        return summary, False

    def invalidate(self, connection_id: str, table_name: Optional[str] = None) -> int:
        """
        Drop one table's summary, or every summary of a connection.

        Returns:
            Number of entries removed
        """
        connection_id = str(connection_id)
        with self._lock:
            if table_name is not None:
                return 1 if self._entries.pop((connection_id, table_name), None) else 0
            keys = [k for k in self._entries if k[0] == connection_id]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                size=len(self._entries),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
