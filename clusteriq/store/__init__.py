"""Snapshot store access for ClusterIQ.

Submodules:
    client -- Redis GET-by-key client returning the serialized inventory.
"""

from clusteriq.store.client import RetrievalError, SnapshotSource, SnapshotStoreClient

__all__ = ["RetrievalError", "SnapshotSource", "SnapshotStoreClient"]
