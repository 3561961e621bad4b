"""Core data structures for ClusterIQ."""

from clusteriq.models.cache import CacheReadiness, RefreshStatus
from clusteriq.models.config import ClusterIQConfig
from clusteriq.models.inventory import (
    Account,
    Cluster,
    DeserializationError,
    Instance,
    Inventory,
)

__all__ = [
    "Account",
    "CacheReadiness",
    "Cluster",
    "ClusterIQConfig",
    "DeserializationError",
    "Instance",
    "Inventory",
    "RefreshStatus",
]
