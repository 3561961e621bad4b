"""ClusterIQ inventory API.

Serves a read-only view of cloud resource inventory (accounts, clusters,
instances) materialized from a Redis snapshot.
"""

__version__ = "0.3.0"
