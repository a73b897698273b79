"""
Cache population and upkeep.

- preload_journal_data: fire-and-forget batch of reads, returns the task
- warm_cache: sequential reads of the data every page needs
- start_cache_cleanup: periodic expiry sweep, returns a cancel function
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from .api import CachedJournalApi
from .store import CacheStore

logger = logging.getLogger(__name__)


async def _settle(calls: List[Awaitable[Any]]) -> List[Any]:
    results = await asyncio.gather(*calls, return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        logger.warning(f"{len(failures)}/{len(results)} preload operations failed: {failures[0]}")
    return results


def preload_journal_data(
    api: CachedJournalApi,
    category_ids: Iterable[str] = (),
    student_id: Optional[str] = None,
    preload_count: int = 10,
) -> asyncio.Task:
    """
    Schedule reads for categories, assignments, per-category journal lists
    and progress. Must be called from a running event loop; the returned
    task may be ignored.
    """
    calls: List[Awaitable[Any]] = [
        api.fetch_categories(),
        api.fetch_user_assignments(student_id),
    ]
    for category_id in category_ids:
        calls.append(
            api.fetch_journal_list(
                {
                    "categoryId": category_id,
                    "studentId": student_id,
                    "page": 1,
                    "limit": preload_count,
                    "sortBy": "created_at",
                    "sortOrder": "desc",
                }
            )
        )
        calls.append(api.fetch_progress_data(category_id))
    calls.append(api.fetch_progress_data())

    return asyncio.ensure_future(_settle(calls))


async def warm_cache(api: CachedJournalApi) -> bool:
    try:
        await api.fetch_categories()
        await api.fetch_user_assignments()
        await api.fetch_journal_list(
            {"page": 1, "limit": 20, "sortBy": "created_at", "sortOrder": "desc"}
        )
    except Exception as e:  # noqa: BLE001
        logger.warning(f"Cache warming failed: {e}")
        return False

    logger.info("Cache warmed successfully")
    return True


def start_cache_cleanup(store: CacheStore[Any], interval_sec: float = 5 * 60) -> Callable[[], None]:
    """Run store.cleanup() every interval_sec on the current event loop."""

    async def _loop() -> None:
        while True:
            await asyncio.sleep(interval_sec)
            removed = store.cleanup()
            if removed > 0:
                logger.info(f"Cleaned up {removed} expired cache entries")

    task = asyncio.ensure_future(_loop())

    def cancel() -> None:
        task.cancel()

    return cancel
