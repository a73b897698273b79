#!/usr/bin/env python3
"""
Journal Cache Store
Bounded in-memory cache with per-entry TTL and insertion-order eviction.

Implements:
- set(key, value, ttl_ms) → evicts the oldest insertion when full
- get(key) → value | default (expired entries are dropped on read)
- has(key), delete(key), clear()
- cleanup() → number of expired entries removed
- stats() → {size, max_size, entries, hits, misses, evictions}

Eviction is FIFO by insertion, not LRU: reading a key never moves it.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from .entry import CacheEntry
from .errors import CacheConfigError
from .persistence import PersistenceBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EntryStats:
    key: str
    age_ms: int
    ttl_ms: int


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
    entries: List[EntryStats] = field(default_factory=list)
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate_percent(self) -> float:
        total = self.hits + self.misses
        return round(self.hits / total * 100, 1) if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hit_rate_percent"] = self.hit_rate_percent
        return data


class CacheStore(Generic[T]):
    """
    Ordered key → CacheEntry map.

    Design principles:
    - Reads are synchronous and never touch the producer
    - Graceful degradation: persistence failures are logged, not raised
    - One store per namespace; loaded once at construction
    """

    def __init__(
        self,
        ttl_ms: int,
        max_size: int,
        backend: Optional[PersistenceBackend] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if ttl_ms <= 0:
            raise CacheConfigError(f"ttl_ms must be positive, got {ttl_ms}")
        if max_size <= 0:
            raise CacheConfigError(f"max_size must be positive, got {max_size}")

        self.ttl_ms = int(ttl_ms)
        self.max_size = int(max_size)
        self.backend = backend
        self._clock = clock or time.time
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

        if backend is not None and backend.enabled:
            for key, entry in backend.load():
                self._entries[key] = entry
            removed = self.cleanup()
            # A namespace saved under a larger max_size is trimmed oldest-first
            trimmed = self._evict_down_to(self.max_size)
            if trimmed:
                self._persist()
            logger.info(
                f"CacheStore {backend.namespace} restored {len(self._entries)} entries "
                f"({removed} expired, {trimmed} over capacity on load)"
            )

    def _now_ms(self) -> int:
        return round(self._clock() * 1000)

    def _persist(self) -> None:
        if self.backend is not None:
            self.backend.save(list(self._entries.items()))

    def _evict_down_to(self, limit: int) -> int:
        evicted = 0
        while self._entries and len(self._entries) > limit:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            evicted += 1
            logger.debug(f"Evicted {oldest} (capacity {self.max_size})")
        self._evictions += evicted
        return evicted

    def set(self, key: str, value: T, ttl_ms: Optional[int] = None) -> None:
        entry = CacheEntry(
            data=value,
            created_at=self._now_ms(),
            ttl_ms=int(ttl_ms) if ttl_ms is not None else self.ttl_ms,
        )
        with self._lock:
            if key not in self._entries:
                self._evict_down_to(self.max_size - 1)

            # Overwrite keeps the key's original insertion position
            self._entries[key] = entry
            self._persist()
        logger.debug(f"Cached {key} (ttl={entry.ttl_ms}ms)")

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default

            if entry.is_expired(self._now_ms()):
                del self._entries[key]
                self._persist()
                self._misses += 1
                logger.debug(f"Expired {key}")
                return default

            self._hits += 1
            return entry.data

    def has(self, key: str) -> bool:
        missing = object()
        return self.get(key, missing) is not missing

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            self._persist()
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._persist()

    def cleanup(self) -> int:
        """Remove all expired entries. Should be called periodically."""
        with self._lock:
            now = self._now_ms()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            if expired:
                self._persist()

        if expired:
            logger.info(f"Cleared {len(expired)} expired cache entries")
        return len(expired)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            now = self._now_ms()
            entries = [
                EntryStats(key=key, age_ms=entry.age_ms(now), ttl_ms=entry.ttl_ms)
                for key, entry in self._entries.items()
            ]
            return CacheStats(
                size=len(self._entries),
                max_size=self.max_size,
                entries=entries,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    def report(self) -> str:
        """Cache statistics as a printable report."""
        stats = self.stats()
        name = self.backend.namespace if self.backend is not None else "memory"
        total = stats.hits + stats.misses
        lines = [
            "=" * 60,
            f"JOURNAL CACHE REPORT ({name})",
            "=" * 60,
            f"Hit Rate: {stats.hit_rate_percent}% ({stats.hits}/{total})",
            f"Cache Size: {stats.size}/{stats.max_size} entries",
            f"Evictions: {stats.evictions}",
            "=" * 60,
        ]
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)
