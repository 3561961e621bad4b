"""Cache layer for ClusterIQ.

Holds the inventory snapshot in memory, refreshed from the snapshot store
on every query.  Refresh failures leave the last-known-good snapshot in
place; staleness is reported through ``readiness()`` and ``status()``.

Submodules:
    inventory_cache -- InventoryCache and the AccountNotFoundError lookup failure.
"""

from clusteriq.cache.inventory_cache import AccountNotFoundError, InventoryCache

__all__ = ["AccountNotFoundError", "InventoryCache"]
