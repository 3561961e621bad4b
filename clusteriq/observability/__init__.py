"""Logging and metrics for ClusterIQ."""
