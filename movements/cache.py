"""
Movement Cache - Process-local TTL cache of pipeline results.

Whale movements stay relevant for hours, so entries live for an hour by
default. At most ``max_entries`` distinct queries are kept; the least
recently used entry is evicted first.
"""

import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from movements.models import Chain, Movement


logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: list[Movement]
    fetched_at: float  # time.monotonic()


class MovementCache:
    """
    TTL + LRU cache keyed by query parameters.

    Usage:
        cache = MovementCache()
        key = cache.cache_key([Chain.ETHEREUM], ["whales"], since)
        movements = cache.get(key)
        if movements is None:
            movements = ...
            cache.set(key, movements)
    """

    def __init__(self, ttl_seconds: float = 3600, max_entries: int = 100) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def cache_key(
        chains: Iterable[Chain],
        filters: Optional[Iterable[str]] = None,
        since: Optional[datetime] = None,
    ) -> str:
        """Order-insensitive key for a query."""
        return json.dumps(
            {
                "chains": sorted(c.value for c in chains),
                "filters": sorted(filters) if filters else None,
                "since": int(since.timestamp() * 1000) if since else None,
            },
            sort_keys=True,
        )

    def get(self, key: str) -> Optional[list[Movement]]:
        """Cached movements, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if time.monotonic() - entry.fetched_at > self._ttl:
            del self._entries[key]
            self._misses += 1
            logger.debug(f"[MovementCache] Expired: {key}")
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return list(entry.data)

    def set(self, key: str, data: Iterable[Movement]) -> None:
        self._entries[key] = CacheEntry(data=list(data), fetched_at=time.monotonic())
        self._entries.move_to_end(key)

        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"[MovementCache] Evicted: {evicted}")

    def clear(self) -> None:
        self._entries.clear()

    def get_stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "max": self._max_entries,
            "ttl": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
        }

    def __len__(self) -> int:
        return len(self._entries)
