"""Configuration loader for the journal cache instances."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml
from jsonschema import Draft7Validator

from .errors import CacheConfigError
from .persistence import BackendKind

INSTANCE_NAMES = ("api", "image", "user_data")

_INSTANCE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "namespace": {"type": "string", "minLength": 1},
        "ttl_sec": {"type": "number", "exclusiveMinimum": 0},
        "max_size": {"type": "integer", "minimum": 1},
        "backend": {"type": "string", "enum": [kind.value for kind in BackendKind]},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "db_path": {"type": "string", "minLength": 1},
        "cleanup_interval_sec": {"type": "number", "exclusiveMinimum": 0},
        "instances": {
            "type": "object",
            "properties": {name: _INSTANCE_SCHEMA for name in INSTANCE_NAMES},
            "additionalProperties": False,
        },
    },
}

_validator = Draft7Validator(CONFIG_SCHEMA)

DEFAULT_INSTANCES: Dict[str, Dict[str, Any]] = {
    "api": {"ttl_sec": 5 * 60, "max_size": 50, "backend": "ephemeral"},
    "image": {"ttl_sec": 30 * 60, "max_size": 100, "backend": "durable"},
    "user_data": {"ttl_sec": 10 * 60, "max_size": 20, "backend": "ephemeral"},
}


@dataclass(frozen=True)
class CacheInstanceConfig:
    name: str
    namespace: str
    ttl_ms: int
    max_size: int
    backend: BackendKind

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "CacheInstanceConfig":
        defaults = DEFAULT_INSTANCES[name]
        return cls(
            name=name,
            namespace=data.get("namespace", name),
            ttl_ms=int(float(data.get("ttl_sec", defaults["ttl_sec"])) * 1000),
            max_size=int(data.get("max_size", defaults["max_size"])),
            backend=BackendKind(data.get("backend", defaults["backend"])),
        )


@dataclass(frozen=True)
class CacheConfig:
    db_path: Path
    cleanup_interval_sec: float
    api: CacheInstanceConfig
    image: CacheInstanceConfig
    user_data: CacheInstanceConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        validate_config(data)
        instances = data.get("instances", {})
        return cls(
            db_path=Path(data.get("db_path", "~/.cache/journal_cache/cache.db")).expanduser(),
            cleanup_interval_sec=float(data.get("cleanup_interval_sec", 300)),
            api=CacheInstanceConfig.from_dict("api", instances.get("api", {})),
            image=CacheInstanceConfig.from_dict("image", instances.get("image", {})),
            user_data=CacheInstanceConfig.from_dict("user_data", instances.get("user_data", {})),
        )

    def instances(self) -> Dict[str, CacheInstanceConfig]:
        return {name: getattr(self, name) for name in INSTANCE_NAMES}


ENV_MAP = {
    "db_path": "CACHE_DB_PATH",
    "cleanup_interval_sec": "CACHE_CLEANUP_INTERVAL_SEC",
    "instances.api.ttl_sec": "CACHE_API_TTL_SEC",
    "instances.api.max_size": "CACHE_API_MAX_SIZE",
    "instances.api.backend": "CACHE_API_BACKEND",
    "instances.image.ttl_sec": "CACHE_IMAGE_TTL_SEC",
    "instances.image.max_size": "CACHE_IMAGE_MAX_SIZE",
    "instances.image.backend": "CACHE_IMAGE_BACKEND",
    "instances.user_data.ttl_sec": "CACHE_USER_DATA_TTL_SEC",
    "instances.user_data.max_size": "CACHE_USER_DATA_MAX_SIZE",
    "instances.user_data.backend": "CACHE_USER_DATA_BACKEND",
}


def validate_config(data: Dict[str, Any]) -> None:
    errors = sorted(_validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        messages = ", ".join(error.message for error in errors)
        raise CacheConfigError(f"cache config validation failed: {messages}")


def load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    merged = json.loads(json.dumps(config_data))  # deep copy via json

    for dotted_key, env_name in ENV_MAP.items():
        if env_name not in os.environ:
            continue
        value: Any = os.environ[env_name]
        target = merged
        parts = dotted_key.split(".")
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        last = parts[-1]
        if last == "max_size":
            value = int(value)
        elif last in {"ttl_sec", "cleanup_interval_sec"}:
            value = float(value)
        target[last] = value

    return merged


def load_config(config_path: str | Path = "config/cache.defaults.yml") -> CacheConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = load_yaml(path)
    data = merge_env_overrides(data)
    return CacheConfig.from_dict(data)
