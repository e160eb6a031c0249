"""k-means runner backed by scikit-learn."""

from __future__ import annotations

import warnings

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning as SklearnConvergenceWarning

from clue_analysis.clustering.types import ClusterResult, labels_to_series


def _fit_kmeans(values: np.ndarray, k: int, seed: int, max_iter: int) -> KMeans:
    model = KMeans(n_clusters=k, n_init=1, max_iter=max_iter, random_state=seed)
    with warnings.catch_warnings():
        # Fewer distinct points than clusters leaves empty clusters, which
        # scoring tolerates.
        warnings.simplefilter("ignore", SklearnConvergenceWarning)
        model.fit(values)
    return model


def _run_kmeans_method(
    data: pd.DataFrame,
    k: int,
    seed: int | None,
    max_iter: int,
) -> ClusterResult:
    """Run single-start k-means. No membership matrix is produced."""
    if seed is None:
        seed = int(np.random.SeedSequence().generate_state(1, dtype=np.uint32)[0])
    values = data.to_numpy(dtype=np.float64)
    model = _fit_kmeans(values, k, seed, max_iter)
    n_iter = int(model.n_iter_)

    # n_iter_ == max_iter also when the tolerance was met on the last
    # iteration; the same start with one more iteration allowed stops at
    # max_iter in that case.
    converged = n_iter < max_iter
    if not converged:
        converged = int(_fit_kmeans(values, k, seed, max_iter + 1).n_iter_) <= max_iter

    return ClusterResult(
        assignment=labels_to_series(model.labels_, data.index),
        centers=pd.DataFrame(
            model.cluster_centers_, index=range(k), columns=data.columns.copy()
        ),
        membership=None,
        method="kmeans",
        n_iter=n_iter,
        converged=converged,
    )
