"""Result types produced by the clustering collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
import pandas as pd


@dataclass
class ClusterResult:
    """Raw output of one clustering run.

    Attributes
    ----------
    assignment : pd.Series
        Hard cluster index in ``[0, k)`` per row identifier.
    centers : pd.DataFrame
        One centroid per cluster (index ``0..k-1``), columns match the data.
    membership : pd.DataFrame | None
        Fuzzy membership (rows x clusters), or None for hard methods.
    method : str
        Name of the method that produced the result.
    n_iter : int
        Number of iterations performed.
    converged : bool
        False when the iteration cap was reached.
    """

    assignment: pd.Series
    centers: pd.DataFrame
    membership: pd.DataFrame | None
    method: str
    n_iter: int
    converged: bool

    @property
    def k(self) -> int:
        return int(self.centers.shape[0])


@dataclass
class Partition:
    """A scored clustering: hard assignment plus a membership matrix.

    ``membership`` holds weights in [0, 1]; rows need not sum to one when
    the weights were derived from correlation with the centroids.
    """

    assignment: pd.Series
    membership: pd.DataFrame
    centers: pd.DataFrame
    k: int
    method: str

    @property
    def cluster_sizes(self) -> pd.Series:
        """Number of rows per cluster index, including empty clusters."""
        counts = self.assignment.value_counts()
        return counts.reindex(range(self.k), fill_value=0).astype(int)

    def members(self, cluster: int) -> list[str]:
        return list(self.assignment.index[self.assignment.to_numpy() == cluster])


Clusterer = Callable[[pd.DataFrame, int, "int | None", int], ClusterResult]


def labels_to_series(labels: np.ndarray, index: pd.Index) -> pd.Series:
    return pd.Series(np.asarray(labels, dtype=int), index=index, name="cluster")


__all__ = ["ClusterResult", "Partition", "Clusterer", "labels_to_series"]
