"""REST API layer for ClusterIQ.

Exposes:
    create_app -- FastAPI application factory.
    build_app  -- Alias for create_app (used by clusteriq.app bootstrap).
"""

from clusteriq.api.app import create_app

# The bootstrap in clusteriq.app imports `build_app` from this package.
build_app = create_app

__all__ = ["build_app", "create_app"]
