"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from clusteriq.models.config import (
    APIConfig,
    CacheConfig,
    ClusterIQConfig,
    LogConfig,
    StoreConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"CIQ_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float) -> float:
    return float(_env(key, str(default)))


def _validate_timeout(value: float) -> float:
    if value <= 0:
        raise ValueError(f"Invalid store timeout: {value}. Must be greater than zero")
    return value


def _validate_key(value: str) -> str:
    if not value.strip():
        raise ValueError("Snapshot key must not be empty")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> ClusterIQConfig:
    """Load configuration from CIQ_* environment variables."""
    return ClusterIQConfig(
        store=StoreConfig(
            host=_env("DB_HOST", "localhost"),
            port=_env_int("DB_PORT", 6379, min_val=1, max_val=65535),
            password=_env("DB_PASS", ""),
            db=_env_int("DB_INDEX", 0, min_val=0),
            key=_validate_key(_env("DB_KEY", "Stock")),
            timeout_seconds=_validate_timeout(_env_float("DB_TIMEOUT", 5.0)),
        ),
        cache=CacheConfig(
            max_staleness_seconds=_env_int("MAX_STALENESS", 0, min_val=0),
        ),
        api=APIConfig(
            host=_env("API_HOST", "0.0.0.0"),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
