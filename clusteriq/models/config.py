"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StoreConfig:
    """Redis snapshot store configuration."""

    host: str = "localhost"
    port: int = 6379
    password: str = ""
    db: int = 0
    key: str = "Stock"
    timeout_seconds: float = 5.0

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class CacheConfig:
    """Inventory cache configuration."""

    # 0 disables the staleness bound
    max_staleness_seconds: int = 0


@dataclass
class APIConfig:
    """REST API configuration."""

    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class ClusterIQConfig:
    """Top-level ClusterIQ configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
