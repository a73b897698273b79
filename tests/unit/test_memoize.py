"""Unit tests for async memoization."""

import asyncio

import pytest

from journal_cache.keys import journal_list_key
from journal_cache.memoize import preload_and_cache, with_cache
from journal_cache.store import CacheStore


@pytest.fixture
def store(clock):
    return CacheStore(ttl_ms=1000, max_size=10, clock=clock)


def counting_producer(result=None):
    calls = {"count": 0}

    async def produce(*args, **kwargs):
        calls["count"] += 1
        await asyncio.sleep(0)
        return result if result is not None else {"args": list(args), "n": calls["count"]}

    return produce, calls


class TestWithCache:
    @pytest.mark.asyncio
    async def test_hit_skips_producer(self, store):
        produce, calls = counting_producer()
        cached = with_cache(produce, store)

        first = await cached("a", 1)
        second = await cached("a", 1)

        assert calls["count"] == 1
        assert first == second

    @pytest.mark.asyncio
    async def test_different_args_miss(self, store):
        produce, calls = counting_producer()
        cached = with_cache(produce, store)

        await cached("a")
        await cached("b")
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, store, clock):
        produce, calls = counting_producer()
        cached = with_cache(produce, store)

        await cached("a")
        clock.advance_ms(1001)
        await cached("a")
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_falsy_result_is_cached(self, store):
        calls = {"count": 0}

        async def produce():
            calls["count"] += 1
            return []

        cached = with_cache(produce, store)
        assert await cached() == []
        assert await cached() == []
        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_producer_error_propagates_and_is_not_cached(self, store):
        calls = {"count": 0}

        async def produce(key):
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("boom")
            return "ok"

        cached = with_cache(produce, store)
        with pytest.raises(RuntimeError, match="boom"):
            await cached("x")
        assert len(store) == 0

        assert await cached("x") == "ok"
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_custom_key_fn_canonicalizes(self, store):
        produce, calls = counting_producer(result={"ok": True})
        cached = with_cache(produce, store, journal_list_key)

        await cached({"page": 1, "categoryId": "c1"})
        await cached({"categoryId": "c1", "page": 1, "search": None})

        assert calls["count"] == 1
        assert store.keys() == ['journals_list_{"categoryId": "c1", "page": 1}']

    @pytest.mark.asyncio
    async def test_default_key_is_order_sensitive(self, store):
        produce, calls = counting_producer(result={"ok": True})
        cached = with_cache(produce, store)

        await cached({"page": 1, "categoryId": "c1"})
        await cached({"categoryId": "c1", "page": 1})
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_concurrent_misses_both_invoke_producer(self, store):
        produce, calls = counting_producer()
        cached = with_cache(produce, store)

        await asyncio.gather(cached("same"), cached("same"))
        assert calls["count"] == 2
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_invalidate_single_key(self, store):
        produce, calls = counting_producer()
        cached = with_cache(produce, store)

        await cached("a")
        assert cached.invalidate("a") is True
        await cached("a")
        assert calls["count"] == 2

    def test_wraps_producer_metadata(self, store):
        async def fetch_things():
            """Fetch things."""
            return 1

        cached = with_cache(fetch_things, store)
        assert cached.__name__ == "fetch_things"
        assert cached.__doc__ == "Fetch things."
        assert cached.cache_store is store


class TestPreloadAndCache:
    @pytest.mark.asyncio
    async def test_loads_once(self, store):
        calls = {"count": 0}

        async def loader():
            calls["count"] += 1
            return "data"

        assert await preload_and_cache("k", loader, store) == "data"
        assert await preload_and_cache("k", loader, store) == "data"
        assert calls["count"] == 1
