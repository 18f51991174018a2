"""Tests for the TTL search cache."""

import threading

from meetingintel.core.exceptions import SearchProviderError
from meetingintel.intelligence.cache import SearchCache
from meetingintel.intelligence.research_models import SearchResult


class DummySearchProvider:
    """Returns numbered results and records every call."""

    def __init__(self, count: int = 10, error: Exception = None):
        self.count = count
        self.error = error
        self.calls = []

    def search(self, query, max_results):
        self.calls.append((query, max_results))
        if self.error:
            raise self.error
        return [
            SearchResult(title=f"{query} #{i}", snippet="snippet", link=f"https://example.com/{i}")
            for i in range(min(self.count, max_results))
        ]


def test_second_lookup_within_ttl_is_served_from_cache(clock):
    provider = DummySearchProvider()
    cache = SearchCache(provider, ttl_seconds=900, clock=clock)

    first = cache.get_or_fetch("acme news", limit=5)
    clock.advance(899)
    second = cache.get_or_fetch("acme news", limit=5)

    assert first == second
    assert len(provider.calls) == 1
    assert cache.stats.hits == 1
    assert cache.stats.misses == 1


def test_expired_entry_is_refetched_and_timestamp_overwritten(clock):
    provider = DummySearchProvider()
    cache = SearchCache(provider, ttl_seconds=900, clock=clock)

    cache.get_or_fetch("acme news")
    clock.advance(900)
    assert cache.get_entry("acme news") is None

    cache.get_or_fetch("acme news")

    assert len(provider.calls) == 2
    assert cache.get_entry("acme news").timestamp == clock.now


def test_full_result_set_is_cached_and_limit_applied_on_read(clock):
    provider = DummySearchProvider(count=10)
    cache = SearchCache(provider, max_results=10, clock=clock)

    assert len(cache.get_or_fetch("acme", limit=3)) == 3
    assert len(cache.get_or_fetch("acme", limit=8)) == 8
    assert provider.calls == [("acme", 10)]


def test_provider_error_returns_synthetic_result_and_is_not_cached(clock):
    provider = DummySearchProvider(error=SearchProviderError("quota exhausted"))
    cache = SearchCache(provider, clock=clock)

    results = cache.get_or_fetch("acme")

    assert len(results) == 1
    assert results[0].is_error
    assert results[0].title == "Search failed"
    assert results[0].snippet == "quota exhausted"
    assert results[0].link == ""
    assert len(cache) == 0
    assert cache.stats.provider_errors == 1

    provider.error = None
    assert not cache.get_or_fetch("acme")[0].is_error
    assert len(provider.calls) == 2


def test_prime_and_clear(clock):
    provider = DummySearchProvider()
    cache = SearchCache(provider, clock=clock)
    cache.prime("warm query", [SearchResult(title="Warm", snippet="cached")])

    assert cache.get_or_fetch("warm query")[0].title == "Warm"
    assert provider.calls == []

    assert cache.clear() == 1
    assert len(cache) == 0


def test_concurrent_misses_never_corrupt_entries():
    provider = DummySearchProvider(count=4)
    cache = SearchCache(provider)
    results = []

    def worker():
        results.append(cache.get_or_fetch("shared query", limit=4))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(len(r) == 4 for r in results)
    assert len(cache.get_entry("shared query").results) == 4
