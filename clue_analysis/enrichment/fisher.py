"""Exact test and p-value combination primitives.

Over-representation of an annotation group in a cluster is judged with the
one-sided (``alternative="greater"``) Fisher's exact test on the 2x2 table

                in group   not in group
    in cluster      a           b
    elsewhere       c           d

which equals the hypergeometric upper tail P(X >= a). The vectorised
variant uses that identity to test many groups against one cluster at once.

Group-level p-values are summarised with Fisher's combined probability
method: -2 * sum(log p_i) ~ chi2 with 2n degrees of freedom.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy.stats import combine_pvalues, fisher_exact, hypergeom

from clue_analysis import config


def _clip_pvalues(p_values: np.ndarray) -> np.ndarray:
    return np.clip(p_values, config.PVALUE_FLOOR, 1.0)


def fisher_exact_pvalue(a: int, b: int, c: int, d: int) -> float:
    """One-sided Fisher's exact test p-value for over-representation.

    Examples
    --------
    >>> fisher_exact_pvalue(10, 0, 0, 10) < 1e-4
    True
    """
    if min(a, b, c, d) < 0:
        raise ValueError(f"Contingency counts must be non-negative, got {(a, b, c, d)}.")
    _odds_ratio, p_value = fisher_exact([[a, b], [c, d]], alternative="greater")
    return float(_clip_pvalues(np.asarray(p_value, dtype=float)))


def fisher_exact_pvalues(
    overlap: np.ndarray,
    group_sizes: np.ndarray,
    cluster_size: int,
    universe_size: int,
) -> np.ndarray:
    """Vectorised over-representation p-values for one cluster.

    Parameters
    ----------
    overlap : np.ndarray
        Members of each group inside the cluster (cell ``a``).
    group_sizes : np.ndarray
        Group sizes within the universe (``a + c``).
    cluster_size : int
        Cluster size within the universe (``a + b``).
    universe_size : int
        Size of the background universe (``a + b + c + d``).

    Returns
    -------
    np.ndarray
        P(X >= a) under the hypergeometric null, floored at
        ``config.PVALUE_FLOOR``.
    """
    overlap = np.asarray(overlap, dtype=np.int64)
    group_sizes = np.asarray(group_sizes, dtype=np.int64)
    if overlap.size == 0:
        return np.zeros(0, dtype=float)

    p_values = hypergeom.sf(overlap - 1, universe_size, group_sizes, cluster_size)
    # No overlap can never indicate over-representation
    p_values = np.where(overlap > 0, p_values, 1.0)
    return _clip_pvalues(np.asarray(p_values, dtype=float))


def combine_fisher_pvalues(p_values: Sequence[float] | np.ndarray) -> tuple[float, float]:
    """Combine independent p-values with Fisher's method.

    Returns
    -------
    tuple[float, float]
        ``(chi2_statistic, combined_pvalue)``. An empty input carries no
        evidence of enrichment and yields ``(0.0, 1.0)``.
    """
    p_array = np.asarray(p_values, dtype=float)
    if p_array.size == 0:
        return 0.0, 1.0

    statistic, combined = combine_pvalues(_clip_pvalues(p_array), method="fisher")
    combined = float(_clip_pvalues(np.asarray(combined, dtype=float)))
    return float(statistic), combined


__all__ = ["fisher_exact_pvalue", "fisher_exact_pvalues", "combine_fisher_pvalues"]
