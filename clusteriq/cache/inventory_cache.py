"""In-memory inventory cache with refresh-on-query semantics.

Every query first refreshes the snapshot from the store, then traverses
whatever snapshot is held afterwards.  A failed refresh keeps the previous
snapshot (last-known-good) and is logged; it never fails the query.

Concurrency model (single asyncio event loop):

* The held ``Inventory`` is swapped by a single reference assignment and
  each query captures that reference once before traversing, so a query
  never observes two snapshots.
* Refreshes are single-flight: concurrent queries await the same in-flight
  refresh task rather than racing their own fetches.  A query that starts
  after another therefore never sees an older snapshot than it.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime, timedelta

import structlog

from clusteriq.models.cache import CacheReadiness, RefreshStatus
from clusteriq.models.inventory import Account, Cluster, DeserializationError, Instance, Inventory
from clusteriq.observability.metrics import (
    last_success_timestamp,
    queries_total,
    refresh_duration_seconds,
    refresh_total,
    snapshot_generation,
)
from clusteriq.store.client import RetrievalError, SnapshotSource

_log = structlog.get_logger(component="cache.inventory")


class AccountNotFoundError(LookupError):
    """Raised when no account with the requested name exists in the snapshot."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no such account: {name!r}")
        self.name = name


def _log_refresh_crash(task: asyncio.Task[bool]) -> None:
    """Retrieve and log an unexpected refresh error.

    Runs even when every caller awaiting the shared task was cancelled, so
    the error is never left unretrieved on the task.
    """
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _log.error("inventory_refresh_crashed", error=str(exc), error_type=type(exc).__name__)


class InventoryCache:
    """Owns the current inventory snapshot and answers queries against it.

    Constructed once at startup and handed to request handlers; it needs no
    explicit teardown beyond ``stop()`` draining an in-flight refresh.

    Args:
        source:                Snapshot source (normally SnapshotStoreClient).
        fetch_timeout:         Deadline in seconds for each fetch. ``None``
                               defers to the source's own default.
        max_staleness_seconds: Age after which a snapshot is reported as
                               DEGRADED even without a failed refresh.
                               0 disables the bound.
    """

    def __init__(
        self,
        source: SnapshotSource,
        fetch_timeout: float | None = None,
        max_staleness_seconds: int = 0,
    ) -> None:
        self._source = source
        self._fetch_timeout = fetch_timeout
        self._max_staleness = timedelta(seconds=max_staleness_seconds) if max_staleness_seconds > 0 else None

        self._inventory = Inventory()
        self._generation = 0
        self._last_attempt_at: datetime | None = None
        self._last_success_at: datetime | None = None
        self._last_error: str | None = None
        self._consecutive_failures = 0
        self._inflight: asyncio.Task[bool] | None = None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Refresh the snapshot, joining an in-flight refresh if one exists.

        Returns True when the refresh loaded a new snapshot.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.get_running_loop().create_task(self._refresh_once(), name="inventory-refresh")
            task.add_done_callback(_log_refresh_crash)
            self._inflight = task
        # Shielded so a cancelled caller does not abort the shared refresh.
        return await asyncio.shield(task)

    async def _refresh_once(self) -> bool:
        self._last_attempt_at = datetime.now(tz=UTC)
        started = time.monotonic()
        try:
            blob = await self._source.fetch_snapshot(timeout=self._fetch_timeout)
            inventory = Inventory.from_json(blob)
        except (RetrievalError, DeserializationError) as exc:
            self._record_failure(exc)
            return False
        finally:
            refresh_duration_seconds.observe(time.monotonic() - started)

        self._inventory = inventory
        self._generation += 1
        self._last_success_at = datetime.now(tz=UTC)
        self._last_error = None
        self._consecutive_failures = 0

        refresh_total.labels(result="success").inc()
        snapshot_generation.set(self._generation)
        last_success_timestamp.set(self._last_success_at.timestamp())
        _log.debug(
            "inventory_refreshed",
            generation=self._generation,
            accounts=len(inventory.accounts),
            clusters=inventory.cluster_count,
            instances=inventory.instance_count,
        )
        return True

    def _record_failure(self, exc: RetrievalError | DeserializationError) -> None:
        self._consecutive_failures += 1
        self._last_error = f"{type(exc).__name__}: {exc}"
        result = "retrieval_error" if isinstance(exc, RetrievalError) else "deserialization_error"
        refresh_total.labels(result=result).inc()
        _log.error(
            "inventory_refresh_failed",
            error_kind=result,
            error=str(exc),
            consecutive_failures=self._consecutive_failures,
            serving_generation=self._generation,
        )

    async def _fresh_snapshot(self, operation: str) -> Inventory:
        await self.refresh()
        queries_total.labels(operation=operation).inc()
        return self._inventory

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_instances(self) -> list[Instance]:
        """Every instance of every cluster of every account."""
        inventory = await self._fresh_snapshot("list_instances")
        return [
            instance
            for account in inventory.accounts.values()
            for cluster in account.clusters.values()
            for instance in cluster.instances
        ]

    async def list_clusters(self) -> list[Cluster]:
        """Every cluster of every account."""
        inventory = await self._fresh_snapshot("list_clusters")
        return [cluster for account in inventory.accounts.values() for cluster in account.clusters.values()]

    async def find_clusters_by_name(self, name: str) -> list[Cluster]:
        """Clusters whose name equals *name* exactly, across all accounts."""
        _log.debug("find_clusters_by_name", cluster_name=name)
        inventory = await self._fresh_snapshot("find_clusters_by_name")
        return [
            cluster
            for account in inventory.accounts.values()
            for cluster in account.clusters.values()
            if cluster.name == name
        ]

    async def list_accounts(self) -> list[Account]:
        inventory = await self._fresh_snapshot("list_accounts")
        return list(inventory.accounts.values())

    async def find_account_by_name(self, name: str) -> Account:
        """Return the account keyed by *name*.

        Raises:
            AccountNotFoundError: if the snapshot has no such account.
        """
        inventory = await self._fresh_snapshot("find_account_by_name")
        account = inventory.accounts.get(name)
        if account is None:
            _log.debug("account_not_found", account_name=name)
            raise AccountNotFoundError(name)
        return account

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    @property
    def inventory(self) -> Inventory:
        """The snapshot currently held, without refreshing."""
        return self._inventory

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot_age(self) -> timedelta | None:
        if self._last_success_at is None:
            return None
        return datetime.now(tz=UTC) - self._last_success_at

    def readiness(self) -> CacheReadiness:
        if self._generation == 0:
            return CacheReadiness.WARMING
        if self._consecutive_failures > 0:
            return CacheReadiness.DEGRADED
        age = self.snapshot_age()
        if self._max_staleness is not None and age is not None and age > self._max_staleness:
            return CacheReadiness.DEGRADED
        return CacheReadiness.READY

    def status(self) -> RefreshStatus:
        inventory = self._inventory
        age = self.snapshot_age()
        return RefreshStatus(
            readiness=self.readiness(),
            generation=self._generation,
            last_attempt_at=self._last_attempt_at,
            last_success_at=self._last_success_at,
            last_error=self._last_error,
            consecutive_failures=self._consecutive_failures,
            snapshot_age_seconds=age.total_seconds() if age is not None else None,
            account_count=len(inventory.accounts),
            cluster_count=inventory.cluster_count,
            instance_count=inventory.instance_count,
        )

    async def stop(self) -> None:
        """Wait for an in-flight refresh so shutdown does not orphan it."""
        task = self._inflight
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)
        self._inflight = None
