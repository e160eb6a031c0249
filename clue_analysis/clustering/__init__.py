"""Partition-producing collaborators: fuzzy c-means and k-means.

Modules
-------
types
    ClusterResult and Partition containers
method_registry
    Method names, unknown-name fallback and the common entry point
membership
    Correlation-derived fuzzy membership for hard methods
runners
    One runner per clustering backend
"""

from .types import ClusterResult, Clusterer, Partition
from .method_registry import METHOD_SPECS, resolve_method, run_clustering
from .membership import correlation_membership

__all__ = [
    "ClusterResult",
    "Clusterer",
    "Partition",
    "METHOD_SPECS",
    "resolve_method",
    "run_clustering",
    "correlation_membership",
]
