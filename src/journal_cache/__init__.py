"""
Journal Cache Layer
TTL + bounded FIFO caching for journal API reads, with optional persistence,
async memoization and pattern invalidation.
"""

from .config import CacheConfig, CacheInstanceConfig, load_config
from .entry import CacheEntry
from .errors import CacheConfigError, CacheError, JournalApiError, StorageQuotaError
from .instances import CacheRegistry, build_caches
from .invalidation import invalidate_cache, invalidate_journal_caches
from .memoize import preload_and_cache, with_cache
from .persistence import (
    BackendKind,
    MemoryStorage,
    PersistenceBackend,
    SqliteStorage,
    StorageContext,
)
from .store import CacheStats, CacheStore

__all__ = [
    'BackendKind',
    'CacheConfig',
    'CacheConfigError',
    'CacheEntry',
    'CacheError',
    'CacheInstanceConfig',
    'CacheRegistry',
    'CacheStats',
    'CacheStore',
    'JournalApiError',
    'MemoryStorage',
    'PersistenceBackend',
    'SqliteStorage',
    'StorageContext',
    'StorageQuotaError',
    'build_caches',
    'invalidate_cache',
    'invalidate_journal_caches',
    'load_config',
    'preload_and_cache',
    'with_cache',
]
