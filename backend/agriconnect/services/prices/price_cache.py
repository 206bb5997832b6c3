"""
In-memory TTL cache for market price reads.

One instance is created by the application container and shared by the price
API (reads) and the sync service (invalidation, last-sync time).
"""
import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from agriconnect.core.config import PRICE_CACHE_TTL_MINUTES

# Filters that make up a cache key, in key order
FILTER_KEYS = ("crop", "crop_id", "region", "region_id")
# Name filters are matched case-insensitively by the store
NAME_FILTERS = ("crop", "region")


@dataclass
class CacheEntry:
    data: List[Dict[str, Any]]
    timestamp: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceCache:
    """TTL cache keyed by price filter parameters.

    Scheduler jobs and sync API endpoints run on worker threads, so every
    read-modify-write happens under one re-entrant lock.
    """

    def __init__(self, ttl_minutes: float = PRICE_CACHE_TTL_MINUTES, clock: Optional[Callable[[], datetime]] = None):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock or _utcnow
        self._entries: Dict[str, CacheEntry] = {}
        self._last_sync: Optional[datetime] = None
        self._generation = 0  # Bumped by every invalidation
        self._lock = threading.RLock()

    @staticmethod
    def make_key(filters: Optional[Dict[str, Any]] = None) -> str:
        """
        Canonical cache key for a filter set.

        Absent (None) filters are omitted; present values, including empty
        strings, are JSON-quoted so no two filter sets share a key.
        """
        filters = filters or {}
        parts = ["prices"]
        for name in FILTER_KEYS:
            value = filters.get(name)
            if value is None:
                continue
            value = str(value)
            if name in NAME_FILTERS:
                value = value.casefold()
            parts.append(f"{name}={json.dumps(value)}")
        return "|".join(parts)

    def get(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Return {data, cached_at, last_sync} or None on a miss or stale entry."""
        key = self.make_key(filters)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() - entry.timestamp > self.ttl:
                del self._entries[key]
                return None

            return {
                "data": entry.data,
                "cached_at": entry.timestamp,
                "last_sync": self._last_sync,
            }

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def set(
        self,
        filters: Optional[Dict[str, Any]],
        data: List[Dict[str, Any]],
        generation: Optional[int] = None,
    ) -> bool:
        """
        Store data under the filter key, replacing any previous entry.

        When generation is given (read before loading data) and the cache was
        invalidated since, the data may predate a sync and is not stored.

        Returns:
            True if stored
        """
        key = self.make_key(filters)
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._entries[key] = CacheEntry(data=data, timestamp=self._clock())
            return True

    def invalidate_all(self):
        with self._lock:
            self._entries.clear()
            self._generation += 1

    def invalidate(self, filters: Optional[Dict[str, Any]] = None):
        key = self.make_key(filters)
        with self._lock:
            self._entries.pop(key, None)
            self._generation += 1

    def set_last_sync_time(self, time: Optional[datetime] = None):
        with self._lock:
            self._last_sync = time or self._clock()

    def get_last_sync_time(self) -> Optional[datetime]:
        with self._lock:
            return self._last_sync

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "last_sync": self._last_sync,
                "ttl_minutes": self.ttl.total_seconds() / 60,
            }
