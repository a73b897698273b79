"""Single cached value with its creation timestamp and TTL."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    created_at: int  # epoch milliseconds
    ttl_ms: int

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.created_at

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.created_at > self.ttl_ms

    def to_dict(self) -> Dict[str, Any]:
        return {"data": self.data, "createdAt": self.created_at, "ttlMs": self.ttl_ms}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry[Any]":
        if not isinstance(data, dict):
            raise ValueError(f"cache entry must be an object, got {type(data).__name__}")
        return cls(
            data=data["data"],
            created_at=int(data["createdAt"]),
            ttl_ms=int(data["ttlMs"]),
        )
