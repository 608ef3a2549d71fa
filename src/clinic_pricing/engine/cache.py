"""
Resolution Cache - per-engine memo of resolved prices.

Entries expire after the TTL. Housekeeping is lazy: every read first checks
whether a full TTL has passed since the last sweep and, if so, drops all
entries. No background timer is involved.
"""
import logging
import time
from typing import Callable, Optional

from .models import CacheEntry, CacheKey, ResolutionResult

logger = logging.getLogger(__name__)


class ResolutionCache:
    """TTL cache keyed by (scope_id, code, service day)."""

    def __init__(self, ttl_seconds: float = 300.0, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._last_sweep = self.clock()
        self.hits = 0
        self.misses = 0
        self.sweeps = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> Optional[ResolutionResult]:
        self._sweep()
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if self.clock() - entry.inserted_at > self.ttl_seconds:
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return entry.result

    def put(self, key: CacheKey, result: ResolutionResult):
        self._entries[key] = CacheEntry(result=result, inserted_at=self.clock())

    def invalidate_scope(self, scope_id: str) -> int:
        """Remove every entry for one scope. Returns the number removed."""
        keys = [key for key in self._entries if key[0] == scope_id]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug("Invalidated %d cached price(s) for scope %s", len(keys), scope_id)
        return len(keys)

    def clear(self):
        self._entries.clear()

    def _sweep(self):
        now = self.clock()
        if now - self._last_sweep > self.ttl_seconds:
            if self._entries:
                logger.debug("Cache sweep dropped %d entries", len(self._entries))
            self._entries.clear()
            self._last_sweep = now
            self.sweeps += 1

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "sweeps": self.sweeps,
            "ttl_seconds": self.ttl_seconds,
        }
