from pathlib import Path

import pytest

from journal_cache.config import CacheConfig, load_config
from journal_cache.errors import CacheConfigError
from journal_cache.persistence import BackendKind

DEFAULTS_PATH = Path(__file__).parent.parent / "config" / "cache.defaults.yml"


def test_load_config_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("cleanup_interval_sec: 60", encoding="utf-8")

    cfg = load_config(path)

    assert isinstance(cfg, CacheConfig)
    assert cfg.cleanup_interval_sec == 60
    assert cfg.api.ttl_ms == 300_000
    assert cfg.image.backend is BackendKind.DURABLE
    assert cfg.user_data.namespace == "user_data"


def test_shipped_defaults_file():
    cfg = load_config(DEFAULTS_PATH)

    assert cfg.api.max_size == 50
    assert cfg.image.ttl_ms == 1_800_000
    assert cfg.user_data.backend is BackendKind.EPHEMERAL


def test_instance_overrides(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        "instances:\n"
        "  api:\n"
        "    ttl_sec: 30\n"
        "    backend: none\n",
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.api.ttl_ms == 30_000
    assert cfg.api.backend is BackendKind.NONE
    assert cfg.api.max_size == 50


def test_env_overrides(monkeypatch, tmp_path):
    source = tmp_path / "config.yml"
    source.write_text("cleanup_interval_sec: 300", encoding="utf-8")

    monkeypatch.setenv("CACHE_API_MAX_SIZE", "5")
    monkeypatch.setenv("CACHE_IMAGE_TTL_SEC", "0.5")
    monkeypatch.setenv("CACHE_DB_PATH", str(tmp_path / "x.db"))

    cfg = load_config(source)

    assert cfg.api.max_size == 5
    assert cfg.image.ttl_ms == 500
    assert cfg.db_path == tmp_path / "x.db"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


@pytest.mark.parametrize(
    "data",
    [
        {"instances": {"api": {"max_size": 0}}},
        {"instances": {"api": {"ttl_sec": -1}}},
        {"instances": {"image": {"backend": "cookies"}}},
        {"instances": {"video": {}}},
        {"cleanup_interval_sec": 0},
        {"instances": {"api": {"ttl_secs": 30}}},
    ],
)
def test_invalid_config_rejected(data):
    with pytest.raises(CacheConfigError, match="validation failed"):
        CacheConfig.from_dict(data)


def test_misspelt_instance_key_rejected(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("instances:\n  image:\n    max_sise: 10\n", encoding="utf-8")

    with pytest.raises(CacheConfigError, match="max_sise"):
        load_config(path)
