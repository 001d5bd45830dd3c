"""In-process TTL + LRU cache for primary match results.

Keys are canonicalized inputs; values are primary MatchResults (which carry
their alternatives). Entries expire ``ttl_seconds`` after insertion and the
least recently used entry is evicted when the cache is full.
"""

import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from combine_normalizer.domain.models import MatchResult
from combine_normalizer.logging import get_logger
from combine_normalizer.utils.timestamps import ensure_utc, utc_now

logger = get_logger(__name__, component="cache")

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_MAX_ENTRIES = 10_000


class ResultCache:
    """Thread-safe result cache.

    Features:
    - TTL expiration measured from insertion (expired entries are evicted on read)
    - Bounded size with LRU eviction
    - Last writer wins on concurrent puts
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize ResultCache.

        Args:
            ttl_seconds: Entry lifetime in seconds
            max_entries: Capacity before LRU eviction
            clock: Returns the current time (UTC); injectable for tests
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, Tuple[MatchResult, datetime]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _now(self) -> datetime:
        return ensure_utc(self.clock())

    def _is_expired(self, stored_at: datetime, now: datetime) -> bool:
        return now - stored_at >= self.ttl

    def get(self, key: str) -> Optional[MatchResult]:
        """
        Get the cached primary result for a key.

        Returns:
            The stored MatchResult, or None on a miss or an expired entry
        """
        now = self._now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            result, stored_at = entry
            if self._is_expired(stored_at, now):
                del self._entries[key]
                self._misses += 1
                logger.debug(
                    f"Cache entry expired: {key}",
                    extra={"event": "cache.evicted", "reason": "expired", "key": key},
                )
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return result

    def put(self, key: str, result: MatchResult) -> None:
        """Store a primary result, evicting the least recently used entry if full."""
        now = self._now()
        with self._lock:
            self._entries[key] = (result, now)
            self._entries.move_to_end(key)

            while len(self._entries) > self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug(
                    f"Cache entry evicted: {evicted_key}",
                    extra={"event": "cache.evicted", "reason": "capacity", "key": evicted_key},
                )

    def invalidate(self, key: str) -> bool:
        """
        Remove one entry.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __contains__(self, key: object) -> bool:
        now = self._now()
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry[1], now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": int(self.ttl.total_seconds()),
                "hits": self._hits,
                "misses": self._misses,
            }
