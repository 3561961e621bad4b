"""Cache readiness and refresh health data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class CacheReadiness(StrEnum):
    """Readiness of the inventory cache.

    WARMING  -- no snapshot has ever loaded; queries return empty results.
    READY    -- the last refresh succeeded and the snapshot is within bounds.
    DEGRADED -- serving last-known-good data after a failed refresh, or the
                snapshot is older than the configured staleness bound.
    """

    WARMING = "warming"
    READY = "ready"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class RefreshStatus:
    """Point-in-time view of the cache's refresh health."""

    readiness: CacheReadiness
    generation: int
    last_attempt_at: datetime | None
    last_success_at: datetime | None
    last_error: str | None
    consecutive_failures: int
    snapshot_age_seconds: float | None
    account_count: int
    cluster_count: int
    instance_count: int
