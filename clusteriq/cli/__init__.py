"""ClusterIQ command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``clusteriq`` script).
"""

from clusteriq.cli.main import cli

__all__ = ["cli"]
