"""
Cache-aside wrapper for container lookups.

Candidate pools are re-queried several times per recommendation request (the
budget, premium and size searches all hit the catalog), so identical
``find_by_query``/``count`` calls within the TTL are served from memory.

The cache is keyed by the frozen query, sort, skip and limit. A TTL of zero
or less disables caching. Writes purge expired entries, and the store holds
at most ``max_entries``, evicting the oldest first. Entries are never written
back to the catalog.
"""

import logging
import threading
import time
from typing import Any, Callable

from casefit.repositories.ports import ContainerQuery, ContainerRepository, ContainerSort

logger = logging.getLogger(__name__)


class ContainerQueryCache:
    """Thread-safe in-memory TTL store shared across requests."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 256,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[tuple, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, key: tuple):
        """Return (found, value)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return False, None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                return False, None
            self.hits += 1
            return True, value

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]

    def set(self, key: tuple, value) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            # Re-inserting moves the key to the newest position
            self._entries.pop(key, None)
            while self._entries and len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
                self.evictions += 1
            self._entries[key] = (now, value)

    def invalidate(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
            }


class CachedContainerRepository(ContainerRepository):
    """Decorates a ContainerRepository with a ContainerQueryCache."""

    def __init__(self, inner: ContainerRepository, cache: ContainerQueryCache):
        self.inner = inner
        self.cache = cache

    def find_by_id(self, container_id):
        return self.inner.find_by_id(container_id)

    def _cached(self, key: tuple, load: Callable[[], Any]):
        if not self.cache.enabled:
            return load()

        found, value = self.cache.get(key)
        if found:
            logger.debug("Container cache hit for %s", key[0])
            return value

        value = load()
        self.cache.set(key, value)
        return value

    def find_by_query(
        self,
        query: ContainerQuery,
        sort: ContainerSort | None = None,
        skip: int = 0,
        limit: int | None = None,
    ):
        key = ("find_by_query", query, sort, skip, limit)
        # Callers may reorder the list they get back
        return list(self._cached(key, lambda: self.inner.find_by_query(query, sort, skip, limit)))

    def count(self, query: ContainerQuery) -> int:
        return self._cached(("count", query), lambda: self.inner.count(query))
