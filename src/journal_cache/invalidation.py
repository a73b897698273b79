#!/usr/bin/env python3
"""
Cache Invalidation
Removes stale reads after a mutation.

The cache has no dependency tracking: after a write, the caller names the
keys (by substring or regex) whose reads it may have changed.
"""

import logging
import re
from typing import Optional, Pattern, Union

from .keys import JOURNAL_LIST_PREFIX, assignments_key, journal_key, progress_key
from .store import CacheStore

logger = logging.getLogger(__name__)


def _matches(pattern: Union[str, Pattern[str]], key: str) -> bool:
    if isinstance(pattern, str):
        return pattern in key
    return pattern.search(key) is not None


def invalidate_cache(pattern: Union[str, Pattern[str]], store: CacheStore) -> int:
    """
    Delete every key matching ``pattern``.

    A str matches by containment, a compiled pattern by ``search``.
    Returns the number of entries removed.
    """
    removed = 0
    for entry in store.stats().entries:
        if _matches(pattern, entry.key):
            if store.delete(entry.key):
                removed += 1

    if removed > 0:
        shown = pattern if isinstance(pattern, str) else pattern.pattern
        logger.info(f"Invalidated {removed} cache entries matching {shown!r}")
    return removed


def invalidate_journal_caches(
    store: CacheStore,
    journal_id: Optional[str] = None,
    category_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> int:
    """Invalidate every read a journal create/update/delete may have changed."""
    removed = 0

    if journal_id:
        removed += invalidate_cache(journal_key(journal_id), store)

    # Any list page may contain the journal
    removed += invalidate_cache(re.compile(f"^{re.escape(JOURNAL_LIST_PREFIX)}"), store)

    if category_id:
        removed += invalidate_cache(progress_key(category_id), store)
    removed += invalidate_cache(progress_key(), store)

    if student_id:
        removed += invalidate_cache(assignments_key(student_id), store)
    removed += invalidate_cache(assignments_key(), store)

    return removed
