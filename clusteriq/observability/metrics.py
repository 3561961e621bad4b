"""Prometheus metrics for the inventory cache and query surface."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

refresh_total = Counter(
    "clusteriq_refresh_total",
    "Inventory refresh attempts by outcome.",
    ["result"],
)

refresh_duration_seconds = Histogram(
    "clusteriq_refresh_duration_seconds",
    "Time spent fetching and decoding an inventory snapshot.",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

snapshot_generation = Gauge(
    "clusteriq_snapshot_generation",
    "Number of snapshots successfully loaded since startup.",
)

last_success_timestamp = Gauge(
    "clusteriq_last_refresh_success_timestamp_seconds",
    "Unix time of the last successful inventory refresh.",
)

queries_total = Counter(
    "clusteriq_queries_total",
    "Inventory queries served, by operation.",
    ["operation"],
)
