"""
Matplotlib plots for evaluation results and fuzzy cluster profiles.

Functions return the Figure and never call ``plt.show()``, so they can be
saved to disk from scripts and tests.
"""

from __future__ import annotations

import math

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from clue_analysis.clustering.types import Partition
from clue_analysis.evaluation.types import ClueEvaluation


def plot_evaluation(evaluation: ClueEvaluation, normalized: bool = True):
    """Box plot of scores per candidate k with the selected k marked."""
    matrix = evaluation.normalized_matrix if normalized else evaluation.evaluation_matrix
    k_values = [int(k) for k in matrix.columns]

    fig, ax = plt.subplots(figsize=(max(6, 0.6 * len(k_values) + 2), 5))
    colors = plt.cm.rainbow(np.linspace(0, 1, len(k_values)))
    boxes = ax.boxplot(
        [matrix[k].to_numpy() for k in matrix.columns],
        patch_artist=True,
    )
    for patch, color in zip(boxes["boxes"], colors):
        patch.set_facecolor(color)
        patch.set_alpha(0.7)

    ax.set_xticks(range(1, len(k_values) + 1))
    ax.set_xticklabels([f"k={k}" for k in k_values], rotation=90)
    best_position = k_values.index(evaluation.best_k) + 1
    ax.axvline(best_position, color="red", alpha=0.3)
    ax.set_xlabel("Number of clusters")
    ax.set_ylabel("Enrichment score")
    ax.set_title("CLUE")
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    return fig


def plot_cluster_profiles(
    time_course: pd.DataFrame,
    partition: Partition,
    ncols: int = 3,
    cmap: str = "viridis",
):
    """One panel per cluster with member profiles coloured by membership."""
    nrows = max(1, math.ceil(partition.k / ncols))
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(4 * ncols, 3 * nrows), squeeze=False, sharey=True
    )
    axes = axes.ravel()
    norm = plt.Normalize(vmin=0.0, vmax=1.0)
    colormap = plt.get_cmap(cmap)
    x = np.arange(time_course.shape[1])

    for cluster in range(partition.k):
        ax = axes[cluster]
        members = partition.members(cluster)
        weights = partition.membership.loc[members, cluster].to_numpy()
        # Draw weak members first so strong members stay on top
        for row_id, weight in sorted(zip(members, weights), key=lambda item: item[1]):
            ax.plot(x, time_course.loc[row_id].to_numpy(), color=colormap(norm(weight)), lw=0.8)
        ax.set_title(f"Cluster {cluster + 1}; size={len(members)}")
        ax.set_xticks(x)
        ax.set_xticklabels(list(time_course.columns), rotation=90)
        ax.grid(True, alpha=0.3)

    for ax in axes[partition.k:]:
        ax.axis("off")

    mappable = plt.cm.ScalarMappable(norm=norm, cmap=colormap)
    fig.colorbar(mappable, ax=list(axes[: partition.k]), shrink=0.8, label="Membership")
    return fig


__all__ = ["plot_evaluation", "plot_cluster_profiles"]
