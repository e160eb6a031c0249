"""Clustering runners, one module per method.

Each runner maps ``(data, k, seed, max_iter)`` to a `ClusterResult`.
"""
