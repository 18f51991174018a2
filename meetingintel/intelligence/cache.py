"""
Search result caching for the research phase.

Memoizes web search calls by literal query string with TTL-based staleness
checks at read time. There is no background sweep; ``clear()`` is the only
way entries leave the cache besides being overwritten.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

import structlog

from meetingintel.intelligence.research_models import SearchResult

logger = structlog.get_logger(__name__)


class SearchProvider(Protocol):
    """Anything that can run a web search."""

    def search(self, query: str, max_results: int) -> List[SearchResult]: ...


@dataclass(frozen=True)
class CacheEntry:
    """Full provider result set plus the time it was fetched."""

    results: List[SearchResult]
    timestamp: float


class CacheStats:
    """Track cache performance metrics."""

    def __init__(self):
        """Initialise counters for cache statistics."""
        self.hits = 0
        self.misses = 0
        self.provider_errors = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Export stats as dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "provider_errors": self.provider_errors,
            "hit_rate": f"{self.hit_rate:.2%}",
        }


class SearchCache:
    """
    TTL cache in front of a search provider.

    Provider errors are never cached; they are returned as a single
    synthetic error result so callers always receive a list. The lock only
    guards the dict, never the provider call, so two concurrent misses on
    the same query may both fetch and the last write wins.
    """

    def __init__(
        self,
        provider: SearchProvider,
        ttl_seconds: float = 900.0,
        max_results: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            provider: Underlying search provider
            ttl_seconds: Age after which an entry is treated as absent
            max_results: Result count requested from the provider on every miss
            clock: Time source, injectable for tests
        """
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.max_results = max_results
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    def get_or_fetch(self, query: str, limit: int = 10) -> List[SearchResult]:
        """Return up to ``limit`` results for ``query``, fetching on a miss."""
        entry = self.get_entry(query)
        if entry is not None:
            with self._lock:
                self.stats.hits += 1
            logger.debug("search_cache_hit", query=query)
            return list(entry.results[:limit])

        with self._lock:
            self.stats.misses += 1

        try:
            results = self.provider.search(query, self.max_results)
        except Exception as e:
            with self._lock:
                self.stats.provider_errors += 1
            logger.error("web_search_failed", query=query, error=str(e))
            return [SearchResult.error(str(e) or type(e).__name__)]

        results = list(results)
        with self._lock:
            self._entries[query] = CacheEntry(results=results, timestamp=self._clock())

        logger.info("web_search_completed", query=query, results=len(results))
        return results[:limit]

    def get_entry(self, query: str) -> Optional[CacheEntry]:
        """Return the live entry for ``query``, or None if absent or stale."""
        with self._lock:
            entry = self._entries.get(query)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            return None
        return entry

    def prime(self, query: str, results: List[SearchResult]) -> None:
        """Store results for ``query`` as if they had just been fetched."""
        with self._lock:
            self._entries[query] = CacheEntry(results=list(results), timestamp=self._clock())

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("search_cache_cleared", entries=count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {**self.stats.to_dict(), "size": len(self), "ttl_seconds": self.ttl_seconds}
