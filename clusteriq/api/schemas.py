"""Request/response schemas for the ClusterIQ REST API."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, Field

from clusteriq.models.cache import RefreshStatus
from clusteriq.models.inventory import Account, Cluster, Instance


class ErrorResponse(BaseModel):
    """Error envelope returned for every 4xx/5xx response."""

    error: str
    detail: str


class InstanceListResponse(BaseModel):
    count: int
    instances: list[Instance] = Field(default_factory=list)

    @classmethod
    def from_items(cls, instances: Sequence[Instance]) -> InstanceListResponse:
        return cls(count=len(instances), instances=list(instances))


class ClusterListResponse(BaseModel):
    count: int
    clusters: list[Cluster] = Field(default_factory=list)

    @classmethod
    def from_items(cls, clusters: Sequence[Cluster]) -> ClusterListResponse:
        return cls(count=len(clusters), clusters=list(clusters))


class AccountListResponse(BaseModel):
    count: int
    accounts: list[Account] = Field(default_factory=list)

    @classmethod
    def from_items(cls, accounts: Sequence[Account]) -> AccountListResponse:
        return cls(count=len(accounts), accounts=list(accounts))


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    cache_state: str


class StatusResponse(BaseModel):
    """Refresh health of the inventory cache."""

    cache_state: str
    generation: int
    last_attempt_at: datetime | None = None
    last_success_at: datetime | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    snapshot_age_seconds: float | None = None
    accounts: int = 0
    clusters: int = 0
    instances: int = 0

    @classmethod
    def from_status(cls, status: RefreshStatus) -> StatusResponse:
        return cls(
            cache_state=status.readiness.value,
            generation=status.generation,
            last_attempt_at=status.last_attempt_at,
            last_success_at=status.last_success_at,
            last_error=status.last_error,
            consecutive_failures=status.consecutive_failures,
            snapshot_age_seconds=status.snapshot_age_seconds,
            accounts=status.account_count,
            clusters=status.cluster_count,
            instances=status.instance_count,
        )
