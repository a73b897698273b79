#!/usr/bin/env python3
"""
Journal Cache Persistence
Best-effort save/load of a store's entries to a storage medium.

Implements:
- BackendKind: none | ephemeral | durable
- MemoryStorage: process-lifetime medium (survives store rebuilds, not restarts)
- SqliteStorage: file-backed medium (survives restarts)
- PersistenceBackend.load() → [(key, CacheEntry)] | []
- PersistenceBackend.save(entries) → None, never raises

Record format: one JSON array of [key, {data, createdAt, ttlMs}] pairs,
stored under the item name "cache_<namespace>".

Values go through JSON, so tuples come back as lists and dict keys as
strings. bytes anywhere in a value are stored as {"__bytes__": <base64>}.
"""

from __future__ import annotations

import base64
import json
import logging
import sqlite3
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from .entry import CacheEntry
from .errors import StorageQuotaError

logger = logging.getLogger(__name__)


class BackendKind(str, Enum):
    NONE = "none"
    EPHEMERAL = "ephemeral"
    DURABLE = "durable"


class Storage(Protocol):
    def get_item(self, name: str) -> Optional[str]: ...

    def set_item(self, name: str, value: str) -> None: ...

    def remove_item(self, name: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._items: Dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get_item(self, name: str) -> Optional[str]:
        return self._items.get(name)

    def set_item(self, name: str, value: str) -> None:
        if self._quota_bytes is not None:
            used = sum(len(v.encode()) for k, v in self._items.items() if k != name)
            if used + len(value.encode()) > self._quota_bytes:
                raise StorageQuotaError(
                    f"writing {name} would exceed quota of {self._quota_bytes} bytes"
                )
        self._items[name] = value

    def remove_item(self, name: str) -> None:
        self._items.pop(name, None)

    def __len__(self) -> int:
        return len(self._items)


class SqliteStorage:
    """
    SQLite-backed storage. One row per namespace holding the serialized
    entry list.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        # Stores may be touched from worker threads (asyncio.to_thread)
        self.conn = sqlite3.connect(db_path, check_same_thread=False, timeout=10.0)
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS cache_namespaces (
                namespace TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            )
            """
        )
        self.conn.commit()
        logger.info(f"SqliteStorage initialized at {db_path}")

    def get_item(self, name: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT payload FROM cache_namespaces WHERE namespace = ?", (name,)
        ).fetchone()
        return row[0] if row else None

    def set_item(self, name: str, value: str) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO cache_namespaces (namespace, payload, updated_at) VALUES (?, ?, ?)",
            (name, value, int(time.time())),
        )
        self.conn.commit()

    def remove_item(self, name: str) -> None:
        self.conn.execute("DELETE FROM cache_namespaces WHERE namespace = ?", (name,))
        self.conn.commit()

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            logger.info("SqliteStorage closed")


class StorageContext:
    """
    Maps backend kinds to the storage media available in this process.

    A detached context has no media at all (batch jobs, server-side
    rendering); every backend resolved from it is a no-op.
    """

    def __init__(
        self,
        ephemeral: Optional[Storage] = None,
        durable: Optional[Storage] = None,
    ) -> None:
        self.ephemeral = ephemeral
        self.durable = durable

    @classmethod
    def detached(cls) -> "StorageContext":
        return cls()

    @classmethod
    def local(cls, db_path: str) -> "StorageContext":
        return cls(ephemeral=MemoryStorage(), durable=SqliteStorage(db_path))

    def resolve(self, kind: BackendKind) -> Optional[Storage]:
        if kind is BackendKind.EPHEMERAL:
            return self.ephemeral
        if kind is BackendKind.DURABLE:
            return self.durable
        return None


BYTES_MARKER = "__bytes__"


def _encode_bytes(value: Any) -> Dict[str, str]:
    if isinstance(value, (bytes, bytearray)):
        return {BYTES_MARKER: base64.b64encode(bytes(value)).decode("ascii")}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_bytes(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and BYTES_MARKER in obj:
        return base64.b64decode(obj[BYTES_MARKER], validate=True)
    return obj


class PersistenceBackend:
    def __init__(
        self,
        kind: BackendKind,
        namespace: str,
        storage: Optional[Storage] = None,
    ) -> None:
        if not namespace:
            raise ValueError("persistence namespace must be a non-empty string")
        self.kind = BackendKind(kind)
        self.namespace = namespace
        self.storage = storage

    @property
    def item_name(self) -> str:
        return f"cache_{self.namespace}"

    @property
    def enabled(self) -> bool:
        return self.kind is not BackendKind.NONE and self.storage is not None

    def load(self) -> List[Tuple[str, CacheEntry[Any]]]:
        if not self.enabled:
            return []

        try:
            raw = self.storage.get_item(self.item_name)
            if not raw:
                return []
            records = json.loads(raw, object_hook=_decode_bytes)
            if not isinstance(records, list):
                raise ValueError("persisted cache is not a list")
            entries = []
            for record in records:
                key, entry = record
                entries.append((str(key), CacheEntry.from_dict(entry)))
            logger.debug(f"Loaded {len(entries)} entries from {self.item_name}")
            return entries
        except (ValueError, TypeError, KeyError, sqlite3.Error, OSError) as e:
            logger.warning(f"Failed to load cache from storage ({self.item_name}): {e}")
            return []

    def save(self, entries: Iterable[Tuple[str, CacheEntry[Any]]]) -> None:
        if not self.enabled:
            return

        try:
            payload = json.dumps(
                [[key, entry.to_dict()] for key, entry in entries], default=_encode_bytes
            )
            self.storage.set_item(self.item_name, payload)
        except (ValueError, TypeError, StorageQuotaError, sqlite3.Error, OSError) as e:
            logger.warning(f"Failed to save cache to storage ({self.item_name}): {e}")
