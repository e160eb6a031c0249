"""Shared builders for the CLUE test-suite."""

from __future__ import annotations

import numpy as np
import pandas as pd

from clue_analysis.clustering.types import ClusterResult
from clue_analysis.enrichment.scorer import EnrichmentResult

SHAPES = np.array(
    [
        [0.0, 1.0, 2.0, 3.0],  # rising
        [3.0, 2.0, 1.0, 0.0],  # falling
        [0.0, 3.0, 3.0, 0.0],  # transient peak
    ]
)


def make_assignment(sizes: list[int], prefix: str = "p") -> pd.Series:
    """Contiguous clusters of the given sizes with ids ``p_1 ..``."""
    labels = np.repeat(np.arange(len(sizes)), sizes)
    index = [f"{prefix}_{i + 1}" for i in range(labels.size)]
    return pd.Series(labels, index=index, name="cluster")


def make_cluster_result(
    data: pd.DataFrame, labels: np.ndarray, k: int, fuzzy: bool = False
) -> ClusterResult:
    """Wrap fixed labels in a ClusterResult with mean centroids."""
    labels = np.asarray(labels, dtype=int)
    centers = pd.DataFrame(
        [
            data.to_numpy()[labels == c].mean(axis=0)
            if np.any(labels == c)
            else np.zeros(data.shape[1])
            for c in range(k)
        ],
        index=range(k),
        columns=data.columns,
    )
    membership = None
    if fuzzy:
        membership = pd.DataFrame(
            np.eye(k)[labels], index=data.index, columns=range(k)
        )
    return ClusterResult(
        assignment=pd.Series(labels, index=data.index, name="cluster"),
        centers=centers,
        membership=membership,
        method="fixed",
        n_iter=1,
        converged=True,
    )


def fixed_enrichment(combined_pvalue: float, k: int) -> EnrichmentResult:
    empty = pd.DataFrame(columns=["group", "pvalue", "group_size", "overlap_size", "overlap"])
    return EnrichmentResult(
        enriched={c: empty.copy() for c in range(k)},
        combined_pvalue=combined_pvalue,
    )


def majority_labels(assignment: pd.Series, labels: np.ndarray, k: int) -> dict[int, int]:
    """Map every cluster to the most frequent true label among its members."""
    mapping = {}
    truth = pd.Series(labels, index=assignment.index)
    for cluster in range(k):
        members = truth[assignment == cluster]
        if not members.empty:
            mapping[cluster] = int(members.value_counts().idxmax())
    return mapping
