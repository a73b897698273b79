"""
Cache key derivation for journal API reads.

Keys are plain strings so invalidation can match them by prefix or regex:
    journals_list_{"categoryId": "c1", "page": 1}
    journal_<id>
    categories_list
    assignments_<user id | current>
    progress_<category id | all>
"""

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

JOURNAL_LIST_PREFIX = "journals_list_"


def default_key(*args: Any, **kwargs: Any) -> str:
    """Structural key for arbitrary call arguments."""
    if kwargs:
        return json.dumps([list(args), kwargs], default=str)
    return json.dumps(list(args), default=str)


def canonical_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Sort keys and drop unset values so equal queries map to one key."""
    if not params:
        return {}
    return {key: params[key] for key in sorted(params) if params[key] is not None}


def journal_list_key(params: Optional[Dict[str, Any]] = None) -> str:
    key = f"{JOURNAL_LIST_PREFIX}{json.dumps(canonical_params(params), default=str)}"
    logger.debug(f"Generated key: {key}")
    return key


def journal_key(journal_id: str) -> str:
    return f"journal_{journal_id}"


def categories_key() -> str:
    return "categories_list"


def assignments_key(user_id: Optional[str] = None) -> str:
    return f"assignments_{user_id or 'current'}"


def progress_key(category_id: Optional[str] = None) -> str:
    return f"progress_{category_id or 'all'}"
