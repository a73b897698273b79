"""Unit tests for named cache instances."""

from dataclasses import replace

import pytest

from journal_cache.config import CacheConfig
from journal_cache.errors import CacheConfigError
from journal_cache.instances import build_caches, local_context
from journal_cache.persistence import BackendKind, MemoryStorage, StorageContext


@pytest.fixture
def config():
    return CacheConfig.from_dict({})


class TestBuildCaches:
    def test_default_tuning(self, config):
        caches = build_caches(config)

        assert (caches.api.ttl_ms, caches.api.max_size) == (300_000, 50)
        assert (caches.image.ttl_ms, caches.image.max_size) == (1_800_000, 100)
        assert (caches.user_data.ttl_ms, caches.user_data.max_size) == (600_000, 20)
        assert caches.image.backend.kind is BackendKind.DURABLE

    def test_detached_context_disables_persistence(self, config):
        caches = build_caches(config)
        for store in caches.all().values():
            assert not store.backend.enabled

    def test_instances_are_independent(self, config):
        caches = build_caches(config)
        caches.api.set("k", 1)
        assert caches.user_data.get("k") is None

    def test_shared_storage_uses_distinct_namespaces(self, config, clock):
        ephemeral = MemoryStorage()
        context = StorageContext(ephemeral=ephemeral, durable=MemoryStorage())
        caches = build_caches(config, context, clock=clock)

        caches.api.set("k", "api")
        caches.user_data.set("k", "user")

        rebuilt = build_caches(config, context, clock=clock)
        assert rebuilt.api.get("k") == "api"
        assert rebuilt.user_data.get("k") == "user"
        assert ephemeral.get_item("cache_api") is not None
        assert ephemeral.get_item("cache_user_data") is not None

    def test_duplicate_namespace_rejected(self, config):
        clashing = replace(config, user_data=replace(config.user_data, namespace="api"))
        with pytest.raises(CacheConfigError, match="share namespace"):
            build_caches(clashing)

    def test_local_context_persists_image_cache(self, tmp_path, clock):
        config = CacheConfig.from_dict({"db_path": str(tmp_path / "cache.db")})
        context = local_context(config)
        caches = build_caches(config, context, clock=clock)
        caches.image.set("avatar_1", b"\x89PNG\r\n\x1a\n")
        context.durable.close()

        reopened = local_context(config)
        rebuilt = build_caches(config, reopened, clock=clock)
        assert rebuilt.image.get("avatar_1") == b"\x89PNG\r\n\x1a\n"
        # Ephemeral storage does not outlive its context
        assert rebuilt.api.backend.storage is not context.ephemeral
        reopened.durable.close()

    def test_by_name(self, config):
        caches = build_caches(config)
        assert caches.by_name("image") is caches.image
        with pytest.raises(KeyError):
            caches.by_name("video")
