"""Fuzzy c-means runner backed by scikit-fuzzy."""

from __future__ import annotations

import numpy as np
import pandas as pd

from clue_analysis import config
from clue_analysis.clustering.types import ClusterResult, labels_to_series


def _random_membership(k: int, n_samples: int, seed: int | None) -> np.ndarray:
    """Column-normalised random initial membership (clusters x samples).

    Drawn from a local generator so no global random state is touched.
    """
    rng = np.random.default_rng(seed)
    u0 = rng.random((k, n_samples))
    return u0 / u0.sum(axis=0, keepdims=True)


def _cmeans(values: np.ndarray, k: int, init: np.ndarray, max_iter: int):
    import skfuzzy as fuzz

    # skfuzzy expects shape (features, samples)
    return fuzz.cluster.cmeans(
        values.T,
        c=k,
        m=config.CMEANS_FUZZIFIER,
        error=config.CMEANS_ERROR,
        maxiter=max_iter,
        init=init,
    )


def _run_cmeans_method(
    data: pd.DataFrame,
    k: int,
    seed: int | None,
    max_iter: int,
) -> ClusterResult:
    """Run fuzzy c-means and return a `ClusterResult` with memberships.

    The hard assignment is the cluster of maximal membership.
    """
    values = data.to_numpy(dtype=np.float64)
    init = _random_membership(k, values.shape[0], seed)

    centers, u, _u0, _d, _jm, n_iter, _fpc = _cmeans(values, k, init, max_iter)
    n_iter = int(n_iter)

    # skfuzzy performs at most max_iter - 1 updates and may meet the
    # tolerance on the last one. Replaying the same start with one more
    # update allowed tells the two cases apart.
    converged = n_iter < max_iter - 1
    if not converged:
        replay_iter = int(_cmeans(values, k, init, max_iter + 1)[5])
        converged = replay_iter < max_iter

    membership = pd.DataFrame(u.T, index=data.index.copy(), columns=range(k))
    labels = u.argmax(axis=0)

    return ClusterResult(
        assignment=labels_to_series(labels, data.index),
        centers=pd.DataFrame(centers, index=range(k), columns=data.columns.copy()),
        membership=membership,
        method="cmeans",
        n_iter=n_iter,
        converged=converged,
    )
