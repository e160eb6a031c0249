"""Fuzzy membership derived from correlation with cluster centroids.

Hard partitioning methods such as k-means report no membership. For those,
the membership of a row in a cluster is the Pearson correlation between the
row's profile and the cluster centroid, mapped from [-1, 1] onto [0, 1].
Rows therefore need not sum to one.
"""

from __future__ import annotations

import numpy as np
import pandas as pd


def correlation_membership(data: pd.DataFrame, centers: pd.DataFrame) -> pd.DataFrame:
    """Compute (r + 1) / 2 for every row and every centroid.

    Parameters
    ----------
    data
        Time-course matrix (rows x time points).
    centers
        Cluster centroids (clusters x time points), same columns as ``data``.

    Returns
    -------
    pd.DataFrame
        Membership in [0, 1], index = data rows, columns = centroid index.
        A constant row or centroid has zero correlation, i.e. weight 0.5.
    """
    x = data.to_numpy(dtype=np.float64)
    c = centers.to_numpy(dtype=np.float64)

    x_centered = x - x.mean(axis=1, keepdims=True)
    c_centered = c - c.mean(axis=1, keepdims=True)

    numerator = x_centered @ c_centered.T
    denominator = np.outer(
        np.linalg.norm(x_centered, axis=1), np.linalg.norm(c_centered, axis=1)
    )
    with np.errstate(divide="ignore", invalid="ignore"):
        correlation = np.where(denominator > 0, numerator / denominator, 0.0)

    membership = (np.clip(correlation, -1.0, 1.0) + 1.0) / 2.0
    return pd.DataFrame(membership, index=data.index.copy(), columns=centers.index.copy())


__all__ = ["correlation_membership"]
