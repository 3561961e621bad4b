"""Shared fixtures for ClusterIQ tests.

Provides an in-memory snapshot source standing in for Redis and a few
realistic inventory documents, so cache and API tests never need a live
store.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from clusteriq.cache.inventory_cache import InventoryCache
from clusteriq.store.client import RetrievalError

# ---------------------------------------------------------------------------
# Snapshot documents
# ---------------------------------------------------------------------------


def make_instance(instance_id: str, name: str, **extra: Any) -> dict[str, Any]:
    """Instance payload as written by the scanner."""
    return {
        "id": instance_id,
        "name": name,
        "instanceType": "m5.xlarge",
        "state": "running",
        "provider": "AWS",
        "tags": [{"key": "Owner", "value": "platform"}],
        **extra,
    }


def make_cluster(name: str, instances: list[dict[str, Any]] | None, **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "provider": "AWS",
        "status": "Running",
        "region": "eu-west-1",
        "consoleLink": f"https://console-openshift-console.apps.{name}.example.com",
        "instances": instances,
        **extra,
    }


def make_snapshot(accounts: dict[str, dict[str, dict[str, Any]]]) -> dict[str, Any]:
    """Build a snapshot document from ``{account: {cluster_name: cluster}}``."""
    return {
        "accounts": {
            account_name: {"name": account_name, "provider": "AWS", "clusters": clusters}
            for account_name, clusters in accounts.items()
        }
    }


def single_cluster_snapshot() -> dict[str, Any]:
    """One account ``acct1`` with one cluster ``clusterA`` holding two instances."""
    return make_snapshot(
        {
            "acct1": {
                "clusterA": make_cluster(
                    "clusterA",
                    [
                        make_instance("i-0a1", "clusterA-master-0"),
                        make_instance("i-0a2", "clusterA-worker-0"),
                    ],
                ),
            },
        }
    )


def shared_name_snapshot() -> dict[str, Any]:
    """Two accounts each owning a cluster called ``shared``."""
    return make_snapshot(
        {
            "prod": {
                "shared": make_cluster("shared", [make_instance("i-p1", "shared-master-0")]),
                "billing": make_cluster("billing", [make_instance("i-p2", "billing-master-0")]),
            },
            "staging": {
                "shared": make_cluster(
                    "shared",
                    [make_instance("i-s1", "shared-master-0"), make_instance("i-s2", "shared-worker-0")],
                ),
            },
        }
    )


# ---------------------------------------------------------------------------
# Fake snapshot source
# ---------------------------------------------------------------------------


class FakeSnapshotSource:
    """In-memory SnapshotSource.

    ``payload`` may be a dict (JSON-encoded on fetch), raw bytes/str, an
    exception instance to raise, or None for a missing key.
    """

    def __init__(self, payload: Any = None, delay: float = 0.0) -> None:
        self.payload = payload
        self.delay = delay
        self.calls = 0
        self.timeouts: list[float | None] = []

    async def fetch_snapshot(self, timeout: float | None = None) -> bytes:
        self.calls += 1
        self.timeouts.append(timeout)
        payload = self.payload
        if self.delay:
            await asyncio.sleep(self.delay)
        if payload is None:
            raise RetrievalError("key 'Stock' not found on fake:6379", key="Stock")
        if isinstance(payload, BaseException):
            raise payload
        if isinstance(payload, dict):
            return json.dumps(payload).encode()
        if isinstance(payload, str):
            return payload.encode()
        return payload


@pytest.fixture
def source() -> FakeSnapshotSource:
    return FakeSnapshotSource(single_cluster_snapshot())


@pytest.fixture
def cache(source: FakeSnapshotSource) -> InventoryCache:
    return InventoryCache(source=source, fetch_timeout=2.0)
