"""Route handlers for the ClusterIQ REST API.

Every inventory route delegates to the InventoryCache held in
``app.state.cache``; the cache refreshes itself before answering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, Request

from clusteriq.api.schemas import (
    AccountListResponse,
    ClusterListResponse,
    ErrorResponse,
    HealthResponse,
    InstanceListResponse,
    StatusResponse,
)
from clusteriq.models.inventory import Account

if TYPE_CHECKING:
    from clusteriq.cache.inventory_cache import InventoryCache

_log = structlog.get_logger(component="api.routes")

router = APIRouter()


def _cache(request: Request) -> InventoryCache:
    return request.app.state.cache


@router.get("/accounts", response_model=AccountListResponse)
async def get_accounts(request: Request) -> AccountListResponse:
    """Every account in the inventory."""
    _log.debug("retrieving complete accounts inventory")
    accounts = await _cache(request).list_accounts()
    return AccountListResponse.from_items(accounts)


@router.get(
    "/accounts/{name}",
    response_model=Account,
    responses={404: {"model": ErrorResponse}},
)
async def get_account_by_name(name: str, request: Request) -> Account:
    """One account by name.  AccountNotFoundError maps to 404 in the app factory."""
    _log.debug("retrieving account by name", account_name=name)
    return await _cache(request).find_account_by_name(name)


@router.get("/clusters", response_model=ClusterListResponse)
async def get_clusters(request: Request) -> ClusterListResponse:
    _log.debug("retrieving complete cluster inventory")
    clusters = await _cache(request).list_clusters()
    return ClusterListResponse.from_items(clusters)


@router.get("/clusters/{name}", response_model=ClusterListResponse)
async def get_clusters_by_name(name: str, request: Request) -> ClusterListResponse:
    """Clusters with this exact name; same-named clusters in several accounts all match."""
    _log.debug("retrieving clusters by name", cluster_name=name)
    clusters = await _cache(request).find_clusters_by_name(name)
    return ClusterListResponse.from_items(clusters)


@router.get("/instances", response_model=InstanceListResponse)
async def get_instances(request: Request) -> InstanceListResponse:
    _log.debug("retrieving complete instance inventory")
    instances = await _cache(request).list_instances()
    return InstanceListResponse.from_items(instances)


@router.get("/health", response_model=HealthResponse)
async def get_health(request: Request) -> HealthResponse:
    """Liveness.  Always 200; does not touch the snapshot store."""
    from clusteriq import __version__

    return HealthResponse(
        version=__version__,
        cache_state=_cache(request).readiness().value,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(request: Request) -> StatusResponse:
    """Refresh health: last success, last error and snapshot age."""
    return StatusResponse.from_status(_cache(request).status())
