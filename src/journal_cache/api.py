#!/usr/bin/env python3
"""
Journal API — cached read accessors

Implements:
- JournalApiClient: async wrappers around the training journal HTTP API
- CachedJournalApi: the same reads memoized through a CacheStore

The client is blocking `requests` underneath; calls are pushed to a worker
thread so they can be awaited without stalling the event loop.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from .errors import JournalApiError
from .keys import assignments_key, categories_key, journal_key, journal_list_key, progress_key
from .memoize import with_cache
from .store import CacheStore

logger = logging.getLogger(__name__)


class JournalApiClient:
    DEFAULT_TIMEOUT = 10  # seconds
    JOURNALS_ENDPOINT = "/api/training/journals"
    CATEGORIES_ENDPOINT = "/api/categories"
    ASSIGNMENTS_ENDPOINT = "/api/training/assignments"
    PROGRESS_ENDPOINT = "/api/training/progress"

    def __init__(self, base_url: str, timeout: Optional[float] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._request_count = 0

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        self._request_count += 1

        try:
            response = requests.request(
                "GET",
                url,
                params={k: str(v) for k, v in (params or {}).items() if v is not None},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise JournalApiError(f"GET {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"Journal API error: GET {endpoint} -> {response.status_code}")
            raise JournalApiError(
                f"GET {endpoint} failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await asyncio.to_thread(self._get, endpoint, params)

    async def journal_list(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.get(self.JOURNALS_ENDPOINT, params)

    async def journal(self, journal_id: str) -> Dict[str, Any]:
        return await self.get(f"{self.JOURNALS_ENDPOINT}/{journal_id}")

    async def categories(self) -> Dict[str, Any]:
        return await self.get(self.CATEGORIES_ENDPOINT)

    async def user_assignments(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.get(self.ASSIGNMENTS_ENDPOINT, {"userId": user_id})

    async def progress(self, category_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.get(self.PROGRESS_ENDPOINT, {"categoryId": category_id})


class CachedJournalApi:
    """Journal API reads served through one cache store."""

    def __init__(self, client: JournalApiClient, store: CacheStore[Any]) -> None:
        self.client = client
        self.store = store

        self.fetch_journal_list = with_cache(client.journal_list, store, journal_list_key)
        self.fetch_journal = with_cache(client.journal, store, journal_key)
        self.fetch_categories = with_cache(client.categories, store, categories_key)
        self.fetch_user_assignments = with_cache(client.user_assignments, store, assignments_key)
        self.fetch_progress_data = with_cache(client.progress, store, progress_key)
