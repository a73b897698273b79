"""Named cache instances: one store per data category, built explicitly."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .config import CacheConfig, CacheInstanceConfig
from .errors import CacheConfigError
from .persistence import PersistenceBackend, StorageContext
from .store import CacheStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheRegistry:
    api: CacheStore[Any]
    image: CacheStore[bytes]
    user_data: CacheStore[Any]

    def all(self) -> Dict[str, CacheStore[Any]]:
        return {"api": self.api, "image": self.image, "user_data": self.user_data}

    def by_name(self, name: str) -> CacheStore[Any]:
        stores = self.all()
        if name not in stores:
            raise KeyError(f"Unknown cache instance: {name}")
        return stores[name]


def local_context(config: CacheConfig) -> StorageContext:
    """In-process ephemeral storage plus the configured SQLite file."""
    return StorageContext.local(str(config.db_path))


def build_store(
    instance: CacheInstanceConfig,
    context: StorageContext,
    clock: Optional[Callable[[], float]] = None,
) -> CacheStore[Any]:
    backend = PersistenceBackend(
        kind=instance.backend,
        namespace=instance.namespace,
        storage=context.resolve(instance.backend),
    )
    return CacheStore(instance.ttl_ms, instance.max_size, backend=backend, clock=clock)


def build_caches(
    config: CacheConfig,
    context: Optional[StorageContext] = None,
    clock: Optional[Callable[[], float]] = None,
) -> CacheRegistry:
    """
    Construct the api, image and user data stores.

    Each instance persists under its own namespace; two instances configured
    with the same namespace would overwrite each other's saved entries, so
    that is rejected here.
    """
    if context is None:
        context = StorageContext.detached()

    instances = config.instances()
    seen: Dict[str, str] = {}
    for name, instance in instances.items():
        if instance.namespace in seen:
            raise CacheConfigError(
                f"cache instances {seen[instance.namespace]!r} and {name!r} "
                f"share namespace {instance.namespace!r}"
            )
        seen[instance.namespace] = name

    stores = {name: build_store(instance, context, clock) for name, instance in instances.items()}
    logger.info(
        "Built cache instances: "
        + ", ".join(
            f"{name}(ttl={inst.ttl_ms}ms, max={inst.max_size}, {inst.backend.value})"
            for name, inst in instances.items()
        )
    )
    return CacheRegistry(**stores)
