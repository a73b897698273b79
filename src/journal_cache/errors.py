"""Exception types for the journal cache layer."""

from __future__ import annotations

from typing import Optional


class CacheError(Exception):
    """Base class for cache layer errors."""


class CacheConfigError(CacheError, ValueError):
    """Invalid store or instance configuration. Raised at construction time."""


class StorageQuotaError(CacheError):
    """The storage medium refused a write because it is full."""


class JournalApiError(CacheError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
