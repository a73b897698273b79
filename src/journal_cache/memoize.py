"""Memoization of async producers through a CacheStore."""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .keys import default_key
from .store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


def with_cache(
    producer: Callable[..., Awaitable[T]],
    store: CacheStore[T],
    key_fn: Optional[Callable[..., str]] = None,
) -> Callable[..., Awaitable[T]]:
    """
    Wrap an async producer so repeated calls with equivalent arguments are
    served from ``store``.

    Args:
        producer: Coroutine function doing the real fetch
        store: Cache to read from and write to
        key_fn: Maps call arguments to a cache key. Defaults to a JSON dump
            of the arguments; pass a canonicalizing function when argument
            order or unset fields should not change the key.

    Producer exceptions are re-raised untouched and nothing is cached.
    Concurrent misses on the same key each run the producer; the last
    result written wins.
    """
    make_key = key_fn or default_key

    @functools.wraps(producer)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        key = make_key(*args, **kwargs)

        cached = store.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        result = await producer(*args, **kwargs)
        store.set(key, result)
        return result

    def invalidate(*args: Any, **kwargs: Any) -> bool:
        return store.delete(make_key(*args, **kwargs))

    wrapper.cache_store = store
    wrapper.key_fn = make_key
    wrapper.invalidate = invalidate
    return wrapper


async def preload_and_cache(
    key: str,
    loader: Callable[[], Awaitable[T]],
    store: CacheStore[T],
) -> T:
    """Return the cached value for ``key`` or load, store and return it."""
    cached = store.get(key, _MISSING)
    if cached is not _MISSING:
        return cached

    data = await loader()
    store.set(key, data)
    return data
